"""Node model of the extension DOM.

A captured extension is a tree of four node kinds. ``Node`` is their union;
the kinds share no base class and consumers dispatch with ``isinstance``.
Only ``Element`` is recursive.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from xml_extension_dom.reader.events import XmlAttribute, XmlName

from .values import Attribute, Name, Namespace


@dataclass(frozen=True)
class ProcessingInstruction:
    """Processing instruction: a target and optional opaque data."""

    target: str
    data: Optional[str] = None


@dataclass(frozen=True)
class Text:
    """Raw character content between tags, whitespace included."""

    content: str


@dataclass(frozen=True)
class Comment:
    """Content of an XML comment."""

    content: str


@dataclass
class Element:
    """XML element with its attributes, in-scope namespaces and children.

    Children keep document order. An element is only appended to while the
    tree builder holds it open; afterwards it belongs to its parent.
    """

    name: Name
    attributes: List[Attribute] = field(default_factory=list)
    namespace: Namespace = field(default_factory=Namespace)
    children: List["Node"] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        name: Union[Name, XmlName],
        attributes: Iterable[Union[Attribute, XmlAttribute]] = (),
        namespace: Optional[Mapping[str, str]] = None,
    ) -> "Element":
        """Create a childless element from DOM or reader representations."""
        if isinstance(name, XmlName):
            name = Name.from_reader(name)
        converted = [
            Attribute.from_reader(attr) if isinstance(attr, XmlAttribute) else attr
            for attr in attributes
        ]
        if not isinstance(namespace, Namespace):
            namespace = Namespace(namespace)
        return cls(name, converted, namespace)

    @classmethod
    def with_name(cls, name: Name) -> "Element":
        return cls(name)

    @classmethod
    def with_local_name(cls, local_name: str) -> "Element":
        """Create an element with no namespace, prefix or attributes."""
        return cls(Name.from_local_name(local_name))

    def append(self, node: "Node") -> None:
        """Append ``node`` as the last child."""
        if not is_node(node):
            raise TypeError(
                f"Child must be an Element, ProcessingInstruction, Text or Comment, "
                f"got {type(node).__name__}"
            )
        self.children.append(node)

    def get_attribute(self, local_name: str, default: Optional[str] = None) -> Optional[str]:
        """Value of the first attribute with the given local name."""
        for attribute in self.attributes:
            if attribute.name.local_name == local_name:
                return attribute.value
        return default

    def to_dict(self) -> Dict[str, Any]:
        return node_to_dict(self)


Node = Union[Element, ProcessingInstruction, Text, Comment]

NODE_TYPES = (Element, ProcessingInstruction, Text, Comment)

_TYPE_TAGS = {
    Element: "element",
    ProcessingInstruction: "processing_instruction",
    Text: "text",
    Comment: "comment",
}


def is_node(value: object) -> bool:
    """Check whether ``value`` is one of the four node kinds."""
    return isinstance(value, NODE_TYPES)


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Convert a node and its subtree to a JSON-compatible dictionary."""
    if isinstance(node, Element):
        return {
            "type": _TYPE_TAGS[Element],
            "name": node.name.to_dict(),
            "attributes": [attribute.to_dict() for attribute in node.attributes],
            "namespace": node.namespace.to_dict(),
            "children": [node_to_dict(child) for child in node.children],
        }
    if isinstance(node, ProcessingInstruction):
        return {"type": _TYPE_TAGS[ProcessingInstruction], "target": node.target, "data": node.data}
    if isinstance(node, Text):
        return {"type": _TYPE_TAGS[Text], "content": node.content}
    if isinstance(node, Comment):
        return {"type": _TYPE_TAGS[Comment], "content": node.content}
    raise TypeError(f"Not a DOM node: {type(node).__name__}")


def node_from_dict(data: Mapping[str, Any]) -> Node:
    """Rebuild a node from the structure produced by ``node_to_dict``."""
    node_type = data.get("type")
    if node_type == "element":
        element = Element(
            Name.from_dict(data["name"]),
            [Attribute.from_dict(item) for item in data.get("attributes", [])],
            Namespace(data.get("namespace", {})),
        )
        for child in data.get("children", []):
            element.append(node_from_dict(child))
        return element
    if node_type == "processing_instruction":
        return ProcessingInstruction(data["target"], data.get("data"))
    if node_type == "text":
        return Text(data["content"])
    if node_type == "comment":
        return Comment(data["content"])
    raise ValueError(f"Unknown node type: {node_type!r}")


def dumps(node: Node, indent: Optional[int] = None) -> str:
    """Serialize a node to JSON."""
    return json.dumps(node_to_dict(node), indent=indent, ensure_ascii=False)


def loads(text: str) -> Node:
    """Deserialize a node from JSON produced by ``dumps``."""
    return node_from_dict(json.loads(text))
