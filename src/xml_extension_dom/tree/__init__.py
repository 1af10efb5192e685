"""Tree building for extension regions.

Key Components:
    ExtensionConsumer: Pulls events up to the root's closing tag and builds the DOM
    ConsumeResult: Completed element or classified error, with metrics and diagnostics
    ExtensionError / ExtensionErrorKind: Classified consumption failures
"""

from .builder import (
    ConsumeResult,
    ConsumerState,
    ExtensionConsumeError,
    ExtensionConsumer,
    ExtensionError,
    ExtensionErrorKind,
    consume,
)

__all__ = [
    "ConsumeResult",
    "ConsumerState",
    "ExtensionConsumeError",
    "ExtensionConsumer",
    "ExtensionError",
    "ExtensionErrorKind",
    "consume",
]
