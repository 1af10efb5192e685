"""Shared utilities for extension capture.

This module provides configuration objects, diagnostic and metrics types, and
logging helpers used across the reader, the DOM builder and the API layer.
"""

from .result import (
    CaptureMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)
from .config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ROOT_TAG,
    ConfigError,
    ConfigValidationError,
    ExtensionConfig,
    ReaderConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "CaptureMetrics",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_ROOT_TAG",
    "ConfigError",
    "ConfigValidationError",
    "ExtensionConfig",
    "ReaderConfig",
    "CorrelationLogger",
    "get_logger",
]
