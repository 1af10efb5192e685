"""Configuration classes for reading and capturing extension regions.

This module provides immutable configuration objects for the streaming event
reader and the extension consumer, with validation, presets and JSON
round-tripping.
"""

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_ROOT_TAG = "extensions"
DEFAULT_CHUNK_SIZE = 8192


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ReaderConfig:
    """Configuration for the streaming XML event reader.

    The ``forbid_*`` switches follow the defusedxml defaults: DTDs are
    tolerated, entity declarations and external references are rejected.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: Optional[str] = None
    forbid_dtd: bool = False
    forbid_entities: bool = True
    forbid_external: bool = True

    def __post_init__(self) -> None:
        """Validate reader configuration."""
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if self.encoding is not None and not self.encoding.strip():
            raise ValueError("encoding must be a non-empty string or None")


@dataclass(frozen=True)
class ExtensionConfig:
    """Configuration for capturing one extension region into a DOM tree.

    Attributes:
        root_tag: Local name of the element bounding the region
        preserve_processing_instructions: Keep processing instructions found
            inside the region as nodes instead of dropping them
        reader: Configuration used when the consumer's caller builds a reader
        correlation_id: Optional correlation ID attached to logs and diagnostics
    """

    root_tag: str = DEFAULT_ROOT_TAG
    preserve_processing_instructions: bool = True
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the consumer configuration."""
        if not self.root_tag:
            raise ConfigValidationError(
                "root_tag cannot be empty",
                field_name="root_tag",
                suggestions=[f"Use the default '{DEFAULT_ROOT_TAG}'"],
            )
        if ":" in self.root_tag or any(ch.isspace() for ch in self.root_tag):
            raise ConfigValidationError(
                f"root_tag must be a local name, got {self.root_tag!r}",
                field_name="root_tag",
                suggestions=["Drop the namespace prefix; only the local name is matched"],
            )
        if not isinstance(self.reader, ReaderConfig):
            raise ConfigValidationError(
                "reader must be a ReaderConfig instance", field_name="reader"
            )

    def override(self, **kwargs: Any) -> "ExtensionConfig":
        """Create a new configuration with specific overrides.

        Nested reader fields use double-underscore notation.

        Example:
            >>> config = ExtensionConfig().override(
            ...     root_tag="ext",
            ...     reader__chunk_size=1024,
            ... )
        """
        reader_overrides: Dict[str, Any] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if key.startswith("reader__"):
                reader_overrides[key[len("reader__"):]] = value
            else:
                top_level[key] = value

        try:
            if reader_overrides:
                top_level["reader"] = replace(self.reader, **reader_overrides)
            return replace(self, **top_level)
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "root_tag": self.root_tag,
            "preserve_processing_instructions": self.preserve_processing_instructions,
            "reader": {f.name: getattr(self.reader, f.name) for f in fields(self.reader)},
            "correlation_id": self.correlation_id,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtensionConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                suggestions=sorted(known),
            )

        values = dict(data)
        try:
            if "reader" in values and isinstance(values["reader"], dict):
                values["reader"] = ReaderConfig(**values["reader"])
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "ExtensionConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def strict(cls, root_tag: str = DEFAULT_ROOT_TAG) -> "ExtensionConfig":
        """Preset rejecting DTDs as well as entities and external references."""
        return cls(root_tag=root_tag, reader=ReaderConfig(forbid_dtd=True))

    @classmethod
    def legacy(cls, root_tag: str = DEFAULT_ROOT_TAG) -> "ExtensionConfig":
        """Preset that drops processing instructions inside the region."""
        return cls(root_tag=root_tag, preserve_processing_instructions=False)
