"""Public API for capturing extensions from XML documents.

Level 1: ``capture_extensions()`` / ``capture_all_extensions()``
Level 2: ``ExtensionParser`` with an ``ExtensionConfig``
Level 3: ``LxmlAdapter`` for turning captured trees into lxml elements or XML text
"""

from .adapters import ConversionResult, LxmlAdapter
from .parser import ExtensionParser, capture_all_extensions, capture_extensions

__all__ = [
    "ConversionResult",
    "ExtensionParser",
    "LxmlAdapter",
    "capture_all_extensions",
    "capture_extensions",
]
