"""XML extension DOM.

Captures vendor-specific, schema-unconstrained XML ("extensions") embedded in
a host document verbatim, as a generic DOM tree built from a streaming event
reader.

Progressive API Disclosure:
- Level 1: Simple functions - capture_extensions(), capture_all_extensions()
- Level 2: Configured parser - ExtensionParser with ExtensionConfig
- Level 3: Event-level consumer - ExtensionConsumer over any XmlEvent stream
"""

__version__ = "0.1.0"
__author__ = "XML Extension DOM Team"

from .api import (
    ExtensionParser,
    LxmlAdapter,
    capture_all_extensions,
    capture_extensions,
)
from .dom import (
    Attribute,
    Comment,
    Element,
    Name,
    Namespace,
    Node,
    ProcessingInstruction,
    Text,
)
from .reader import XmlEvent, XmlEventReader, XmlReaderError
from .shared import ExtensionConfig, ReaderConfig
from .tree import (
    ConsumeResult,
    ExtensionConsumeError,
    ExtensionConsumer,
    ExtensionError,
    ExtensionErrorKind,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple capture functions
    "capture_extensions",
    "capture_all_extensions",

    # Level 2 and 3: Parser, consumer and reader
    "ExtensionParser",
    "ExtensionConsumer",
    "XmlEventReader",
    "XmlEvent",
    "LxmlAdapter",

    # DOM
    "Attribute",
    "Comment",
    "Element",
    "Name",
    "Namespace",
    "Node",
    "ProcessingInstruction",
    "Text",

    # Results and errors
    "ConsumeResult",
    "ExtensionError",
    "ExtensionErrorKind",
    "ExtensionConsumeError",
    "XmlReaderError",

    # Configuration
    "ExtensionConfig",
    "ReaderConfig",
]
