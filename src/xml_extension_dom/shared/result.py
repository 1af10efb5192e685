"""Diagnostic and metrics types shared by the reader and the extension consumer."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Content skipped or dropped
    ERROR = auto()      # Capture aborted


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-compatible dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position is not None:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class CaptureMetrics:
    """Counters collected while one extension region is captured."""

    processing_time_ms: float = 0.0
    events_processed: int = 0
    events_skipped: int = 0
    elements_created: int = 0
    text_nodes: int = 0
    comments: int = 0
    processing_instructions: int = 0
    processing_instructions_dropped: int = 0
    max_depth: int = 0

    @property
    def node_count(self) -> int:
        """Total number of nodes attached below the root shell."""
        return (
            self.elements_created
            + self.text_nodes
            + self.comments
            + self.processing_instructions
        )

    @property
    def events_per_second(self) -> float:
        """Calculate events processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    def observe_depth(self, depth: int) -> None:
        """Record the current open-element depth."""
        if depth > self.max_depth:
            self.max_depth = depth

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "events_processed": self.events_processed,
            "events_skipped": self.events_skipped,
            "elements_created": self.elements_created,
            "text_nodes": self.text_nodes,
            "comments": self.comments,
            "processing_instructions": self.processing_instructions,
            "processing_instructions_dropped": self.processing_instructions_dropped,
            "max_depth": self.max_depth,
        }
