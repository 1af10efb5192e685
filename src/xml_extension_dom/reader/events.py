"""Event vocabulary of the streaming XML reader.

Names and attributes are emitted as lightweight named tuples and namespace
scopes as plain dictionaries. They are the reader's boundary representation;
the DOM keeps its own serializable value types and converts explicitly
(see ``xml_extension_dom.dom.values``).
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, NamedTuple, Optional, Tuple


class EventType(Enum):
    """Kinds of events produced by the reader."""

    START_DOCUMENT = auto()
    END_DOCUMENT = auto()
    START_ELEMENT = auto()
    END_ELEMENT = auto()
    CHARACTERS = auto()             # Coalesced text, CDATA and entity expansions
    COMMENT = auto()
    PROCESSING_INSTRUCTION = auto()
    DOCTYPE = auto()


class XmlName(NamedTuple):
    """Qualified name as resolved by the reader."""

    local_name: str
    namespace: Optional[str] = None
    prefix: Optional[str] = None

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name


class XmlAttribute(NamedTuple):
    """Attribute as resolved by the reader."""

    name: XmlName
    value: str


@dataclass(frozen=True)
class EventPosition:
    """Position of an event in the source document."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        """Convert position to dictionary representation."""
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass(frozen=True)
class XmlEvent:
    """A single reader event.

    Only the fields relevant to ``type`` are set: ``name`` for element events,
    ``attributes`` and ``namespace`` for start-element, ``text`` for
    characters, comments and doctype names, ``target``/``text`` for
    processing instructions.
    """

    type: EventType
    name: Optional[XmlName] = None
    attributes: Tuple[XmlAttribute, ...] = ()
    namespace: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    target: Optional[str] = None
    position: Optional[EventPosition] = None

    @classmethod
    def start_document(cls, position: Optional[EventPosition] = None) -> "XmlEvent":
        return cls(EventType.START_DOCUMENT, position=position)

    @classmethod
    def end_document(cls, position: Optional[EventPosition] = None) -> "XmlEvent":
        return cls(EventType.END_DOCUMENT, position=position)

    @classmethod
    def start_element(
        cls,
        name: XmlName,
        attributes: Tuple[XmlAttribute, ...] = (),
        namespace: Optional[Dict[str, str]] = None,
        position: Optional[EventPosition] = None,
    ) -> "XmlEvent":
        return cls(
            EventType.START_ELEMENT,
            name=name,
            attributes=tuple(attributes),
            namespace=dict(namespace or {}),
            position=position,
        )

    @classmethod
    def end_element(
        cls, name: XmlName, position: Optional[EventPosition] = None
    ) -> "XmlEvent":
        return cls(EventType.END_ELEMENT, name=name, position=position)

    @classmethod
    def characters(
        cls, text: str, position: Optional[EventPosition] = None
    ) -> "XmlEvent":
        return cls(EventType.CHARACTERS, text=text, position=position)

    @classmethod
    def comment(cls, text: str, position: Optional[EventPosition] = None) -> "XmlEvent":
        return cls(EventType.COMMENT, text=text, position=position)

    @classmethod
    def processing_instruction(
        cls,
        target: str,
        data: Optional[str] = None,
        position: Optional[EventPosition] = None,
    ) -> "XmlEvent":
        return cls(
            EventType.PROCESSING_INSTRUCTION, target=target, text=data, position=position
        )

    @classmethod
    def doctype(cls, name: str, position: Optional[EventPosition] = None) -> "XmlEvent":
        return cls(EventType.DOCTYPE, text=name, position=position)

    def __str__(self) -> str:
        if self.type is EventType.START_ELEMENT:
            return f"<{self.name}>"
        if self.type is EventType.END_ELEMENT:
            return f"</{self.name}>"
        if self.type is EventType.PROCESSING_INSTRUCTION:
            return f"<?{self.target}?>"
        return self.type.name
