"""Streaming XML event reader.

Key Components:
    XmlEventReader: Pull-based iterator of events over an XML source
    XmlEvent: Single event with its type, payload and source position
    XmlName / XmlAttribute: Reader-side name and attribute representations
    XmlReaderError: Errors raised by the reader for the document being read
"""

from .events import EventPosition, EventType, XmlAttribute, XmlEvent, XmlName
from .stream import (
    ForbiddenConstructError,
    SourceReadError,
    SourceType,
    UnexpectedEndOfInput,
    XmlEventReader,
    XmlReaderError,
)

__all__ = [
    "EventPosition",
    "EventType",
    "XmlAttribute",
    "XmlEvent",
    "XmlName",
    "ForbiddenConstructError",
    "SourceReadError",
    "SourceType",
    "UnexpectedEndOfInput",
    "XmlEventReader",
    "XmlReaderError",
]
