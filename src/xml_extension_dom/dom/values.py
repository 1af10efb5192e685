"""Name, attribute and namespace values of the extension DOM.

These mirror the reader's ``XmlName``/``XmlAttribute``/namespace dictionaries
but are kept as separate, serializable value types. Conversion in both
directions is explicit and lossless, and equality holds across the two
representations.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from xml_extension_dom.reader.events import XmlAttribute, XmlName

# Prefix used for the default namespace in a Namespace mapping
NO_PREFIX = ""


@dataclass(frozen=True, eq=False)
class Name:
    """Qualified XML name.

    Attributes:
        local_name: The local name ("tag name") of the element or attribute
        namespace: The resolved namespace URI, if any
        prefix: The namespace prefix as written in the source, if any
    """

    local_name: str
    namespace: Optional[str] = None
    prefix: Optional[str] = None

    @classmethod
    def from_local_name(cls, local_name: str) -> "Name":
        """Create a name with only the local part set."""
        return cls(local_name)

    @classmethod
    def from_reader(cls, name: XmlName) -> "Name":
        return cls(name.local_name, name.namespace, name.prefix)

    def to_reader(self) -> XmlName:
        return XmlName(self.local_name, self.namespace, self.prefix)

    @classmethod
    def from_clark(cls, tag: str, prefix: Optional[str] = None) -> "Name":
        """Create a name from ``{uri}local`` notation as used by lxml."""
        if tag.startswith("{"):
            namespace, _, local_name = tag[1:].partition("}")
            return cls(local_name, namespace, prefix)
        return cls(tag, None, prefix)

    def to_clark(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.local_name}"
        return self.local_name

    def _key(self) -> Tuple[str, Optional[str], Optional[str]]:
        return (self.local_name, self.namespace, self.prefix)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Name):
            return self._key() == other._key()
        if isinstance(other, XmlName):
            return self._key() == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        # Same hash as the equal XmlName tuple
        return hash(self._key())

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_name": self.local_name,
            "namespace": self.namespace,
            "prefix": self.prefix,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Name":
        return cls(data["local_name"], data.get("namespace"), data.get("prefix"))


@dataclass(frozen=True, eq=False)
class Attribute:
    """Attribute of an element: a name and its string value."""

    name: Name
    value: str

    @classmethod
    def from_reader(cls, attribute: XmlAttribute) -> "Attribute":
        return cls(Name.from_reader(attribute.name), attribute.value)

    def to_reader(self) -> XmlAttribute:
        return XmlAttribute(self.name.to_reader(), self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (Attribute, XmlAttribute)):
            return self.name == other.name and self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.name, self.value))

    def __str__(self) -> str:
        return f'{self.name}="{self.value}"'

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name.to_dict(), "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Attribute":
        return cls(Name.from_dict(data["name"]), data["value"])


class Namespace(Mapping[str, str]):
    """Read-only mapping from namespace prefix to URI.

    The default namespace is stored under the empty prefix. Compares equal to
    any mapping with the same entries, including the reader's plain dicts.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_reader(cls, namespace: Mapping[str, str]) -> "Namespace":
        return cls(namespace)

    def to_reader(self) -> Dict[str, str]:
        return dict(self._entries)

    def __getitem__(self, prefix: str) -> str:
        return self._entries[prefix]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        return f"Namespace({self._entries!r})"

    @property
    def default(self) -> Optional[str]:
        """URI of the default namespace, if one is in scope."""
        return self._entries.get(NO_PREFIX)

    def to_dict(self) -> Dict[str, str]:
        return dict(sorted(self._entries.items()))
