"""lxml integration for captured extension trees.

The adapter converts an extension DOM into ``lxml.etree`` elements (and from
there into XML text) and back. Names, prefixes, attribute values and
namespace bindings survive the round trip.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from lxml import etree

from xml_extension_dom.dom import (
    Attribute,
    Comment,
    Element,
    Name,
    Namespace,
    ProcessingInstruction,
    Text,
)
from xml_extension_dom.shared import get_logger

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

# Prefixes lxml manages itself and refuses in nsmap
_RESERVED_PREFIXES = frozenset({"xml", "xmlns"})


@dataclass
class ConversionResult:
    """Result of converting to or from lxml."""

    success: bool
    converted_data: Any = None
    error_message: Optional[str] = None
    conversion_time_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class LxmlAdapter:
    """Bidirectional conversion between extension DOM trees and ``lxml.etree``."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.logger = get_logger(__name__, correlation_id, "lxml_adapter")

    def to_lxml(self, element: Element) -> ConversionResult:
        """Convert an Element to an ``lxml.etree`` element."""
        start_time = time.time()
        try:
            lxml_element = self._build(element, None, {})
        except (TypeError, ValueError) as e:
            return self._error_result(f"Failed to convert to lxml: {e}", start_time)

        return ConversionResult(
            success=True,
            converted_data=lxml_element,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"lxml_version": etree.LXML_VERSION},
        )

    def to_string(self, element: Element) -> ConversionResult:
        """Serialize an Element to XML text through lxml."""
        result = self.to_lxml(element)
        if result.success:
            result.converted_data = etree.tostring(result.converted_data, encoding="unicode")
        return result

    def from_lxml(self, lxml_element: Any) -> ConversionResult:
        """Convert an ``lxml.etree`` element to an Element."""
        start_time = time.time()
        if not isinstance(lxml_element, etree._Element) or not isinstance(lxml_element.tag, str):
            return self._error_result("Target data is not a valid lxml element", start_time)

        return ConversionResult(
            success=True,
            converted_data=self._convert(lxml_element),
            conversion_time_ms=(time.time() - start_time) * 1000,
        )

    def _error_result(self, message: str, start_time: float) -> ConversionResult:
        self.logger.warning(message)
        return ConversionResult(
            success=False,
            error_message=message,
            conversion_time_ms=(time.time() - start_time) * 1000,
        )

    def _declarations(
        self, element: Element, parent_scope: Mapping[Optional[str], str]
    ) -> Dict[Optional[str], str]:
        """Namespace declarations ``element`` needs beyond its parent's scope."""
        wanted: Dict[Optional[str], str] = {}
        for prefix, uri in element.namespace.items():
            if prefix in _RESERVED_PREFIXES or not uri:
                continue
            wanted[prefix or None] = uri

        own_names = [element.name] + [attribute.name for attribute in element.attributes]
        for name in own_names:
            if name.namespace and name.namespace != XML_NAMESPACE:
                wanted.setdefault(name.prefix or None, name.namespace)

        return {
            prefix: uri for prefix, uri in wanted.items()
            if parent_scope.get(prefix) != uri
        }

    def _build(
        self,
        element: Element,
        parent: Optional[Any],
        parent_scope: Mapping[Optional[str], str],
    ) -> Any:
        nsmap = self._declarations(element, parent_scope)
        scope = {**parent_scope, **nsmap}
        if element.name.namespace is None and scope.get(None):
            # lxml has no way to emit xmlns="" for an element
            raise ValueError(
                f"<{element.name}> has no namespace inside default namespace "
                f"{scope[None]!r}, which lxml cannot undeclare"
            )
        if parent is None:
            node = etree.Element(element.name.to_clark(), nsmap=nsmap)
        else:
            node = etree.SubElement(parent, element.name.to_clark(), nsmap=nsmap)
        for attribute in element.attributes:
            node.set(attribute.name.to_clark(), attribute.value)

        last = None
        for child in element.children:
            if isinstance(child, Text):
                if last is None:
                    node.text = (node.text or "") + child.content
                else:
                    last.tail = (last.tail or "") + child.content
            elif isinstance(child, Element):
                last = self._build(child, node, scope)
            elif isinstance(child, Comment):
                last = etree.Comment(child.content)
                node.append(last)
            elif isinstance(child, ProcessingInstruction):
                last = etree.ProcessingInstruction(child.target, child.data)
                node.append(last)
            else:
                raise TypeError(f"Not a DOM node: {type(child).__name__}")
        return node

    def _attribute_name(self, key: str, nsmap: Mapping[Optional[str], str]) -> Name:
        name = Name.from_clark(key)
        if name.namespace is None:
            return name
        if name.namespace == XML_NAMESPACE:
            return Name(name.local_name, name.namespace, "xml")
        prefix = next(
            (p for p, uri in nsmap.items() if p is not None and uri == name.namespace),
            None,
        )
        return Name(name.local_name, name.namespace, prefix)

    def _convert(self, node: Any) -> Element:
        qname = etree.QName(node)
        element = Element(
            Name(qname.localname, qname.namespace, node.prefix),
            [
                Attribute(self._attribute_name(key, node.nsmap), value)
                for key, value in node.attrib.items()
            ],
            Namespace({(prefix or ""): uri for prefix, uri in node.nsmap.items()}),
        )
        if node.text:
            element.append(Text(node.text))

        for child in node:
            if child.tag is etree.Comment:
                element.append(Comment(child.text or ""))
            elif child.tag is etree.ProcessingInstruction:
                element.append(ProcessingInstruction(child.target, child.text))
            elif child.tag is etree.Entity:
                element.append(Text(child.text))
            else:
                element.append(self._convert(child))
            if child.tail:
                element.append(Text(child.tail))
        return element
