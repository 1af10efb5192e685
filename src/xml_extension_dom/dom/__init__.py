"""DOM-like tree for verbatim extension content.

Extensions are vendor-specific XML that the surrounding document format has
no schema for, so they are stored as generic trees of the node types below.
Names, attributes and namespaces convert losslessly to and from the
reader's representations.
"""

from .nodes import (
    NODE_TYPES,
    Comment,
    Element,
    Node,
    ProcessingInstruction,
    Text,
    dumps,
    is_node,
    loads,
    node_from_dict,
    node_to_dict,
)
from .values import NO_PREFIX, Attribute, Name, Namespace

__all__ = [
    "NODE_TYPES",
    "NO_PREFIX",
    "Attribute",
    "Comment",
    "Element",
    "Name",
    "Namespace",
    "Node",
    "ProcessingInstruction",
    "Text",
    "dumps",
    "is_node",
    "loads",
    "node_from_dict",
    "node_to_dict",
]
