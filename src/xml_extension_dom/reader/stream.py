"""Pull-based XML event reader built on defusedxml's expat driver.

The reader feeds its source to defusedxml's incremental SAX parser chunk by
chunk and hands the resulting events out one at a time, so a consumer only
ever advances the underlying parse as far as it needs to. Entity
declarations, external references and (optionally) DTDs are rejected by
defusedxml itself.
"""

from collections import deque
from pathlib import Path
from typing import IO, Callable, Deque, Dict, Iterator, List, Optional, Tuple, Union
from xml.parsers import expat
from xml.sax import SAXParseException
from xml.sax.handler import ContentHandler, LexicalHandler, property_lexical_handler
from xml.sax.xmlreader import AttributesNSImpl

from defusedxml.common import DefusedXmlException
from defusedxml.expatreader import DefusedExpatParser

from xml_extension_dom.shared import ReaderConfig, get_logger

from .events import EventPosition, XmlAttribute, XmlEvent, XmlName

# Separator expat places between namespace URI, local name and prefix
NAMESPACE_SEPARATOR = " "

_TRUNCATION_CODES = frozenset(
    expat.errors.codes[message]
    for message in (
        expat.errors.XML_ERROR_NO_ELEMENTS,
        expat.errors.XML_ERROR_UNCLOSED_TOKEN,
        expat.errors.XML_ERROR_PARTIAL_CHAR,
    )
)

SourceType = Union[str, bytes, bytearray, Path, IO[str], IO[bytes]]

_NamePair = Tuple[Optional[str], str]


class XmlReaderError(Exception):
    """Error reported by the event reader for the document being read."""

    def __init__(
        self,
        message: str,
        position: Optional[EventPosition] = None,
        code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.code = code

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (line {self.position.line}, column {self.position.column})"


class UnexpectedEndOfInput(XmlReaderError):
    """The source ended while elements or markup were still open."""


class SourceReadError(XmlReaderError):
    """The source could not be read or decoded; ``__cause__`` holds the I/O error."""


class ForbiddenConstructError(XmlReaderError):
    """The document uses a construct the reader is configured to reject."""

    def __init__(
        self,
        message: str,
        forbidden: DefusedXmlException,
        position: Optional[EventPosition] = None,
    ) -> None:
        super().__init__(message, position)
        self.forbidden = forbidden


def _split_expat_name(raw: str) -> Tuple[_NamePair, str]:
    """Split an expat ``uri local [prefix]`` name into a SAX pair and qname."""
    parts = raw.split(NAMESPACE_SEPARATOR)
    if len(parts) == 3:
        return (parts[0], parts[1]), f"{parts[2]}:{parts[1]}"
    if len(parts) == 2:
        return (parts[0], parts[1]), parts[1]
    return (None, raw), raw


def _xml_name(pair: _NamePair, qname: Optional[str]) -> XmlName:
    namespace, local_name = pair
    prefix = None
    if qname and ":" in qname:
        prefix = qname.partition(":")[0]
    return XmlName(local_name, namespace, prefix)


class _EventParser(DefusedExpatParser):
    """defusedxml's namespace-aware expat driver, keeping element prefixes.

    The stock driver passes ``None`` as the qualified name of elements, so
    the prefix expat resolved is lost. Here it is forwarded as the qname, the
    same way the stock driver already does for attributes.
    """

    def __init__(self, config: ReaderConfig) -> None:
        super().__init__(
            namespaceHandling=1,
            forbid_dtd=config.forbid_dtd,
            forbid_entities=config.forbid_entities,
            forbid_external=config.forbid_external,
        )
        self._source.setEncoding(config.encoding)

    def start_element_ns(self, name: str, attrs: Dict[str, str]) -> None:
        pair, qname = _split_expat_name(name)
        values: Dict[_NamePair, str] = {}
        qnames: Dict[_NamePair, str] = {}
        for raw_name, value in attrs.items():
            attribute_pair, attribute_qname = _split_expat_name(raw_name)
            values[attribute_pair] = value
            qnames[attribute_pair] = attribute_qname
        self._cont_handler.startElementNS(pair, qname, AttributesNSImpl(values, qnames))

    def end_element_ns(self, name: str) -> None:
        pair, qname = _split_expat_name(name)
        self._cont_handler.endElementNS(pair, qname)

    def getByteIndex(self) -> int:
        if self._parser is None:
            return 0
        return max(self._parser.CurrentByteIndex, 0)


class _EventHandler(ContentHandler, LexicalHandler):
    """Turns SAX callbacks into ``XmlEvent`` values.

    Adjacent character data is coalesced into one event; the in-scope
    namespace mapping is tracked per open element.
    """

    def __init__(self, locator: _EventParser, emit: Callable[[XmlEvent], None]) -> None:
        super().__init__()
        self._position_source = locator
        self._emit = emit
        self._text_buffer: List[str] = []
        self._text_position: Optional[EventPosition] = None
        self._scopes: List[Dict[str, str]] = [{}]
        self._declared: Dict[str, str] = {}

    def position(self) -> EventPosition:
        locator = self._position_source
        return EventPosition(
            line=max(locator.getLineNumber() or 1, 1),
            column=(locator.getColumnNumber() or 0) + 1,
            offset=locator.getByteIndex(),
        )

    def flush_characters(self) -> None:
        if not self._text_buffer:
            return
        text = "".join(self._text_buffer)
        self._text_buffer.clear()
        self._emit(XmlEvent.characters(text, self._text_position))
        self._text_position = None

    def discard(self) -> None:
        self._text_buffer.clear()
        self._text_position = None

    # ContentHandler

    def startDocument(self) -> None:
        self._emit(XmlEvent.start_document(self.position()))

    def startPrefixMapping(self, prefix: Optional[str], uri: Optional[str]) -> None:
        self._declared[prefix or ""] = uri or ""

    def startElementNS(self, name: _NamePair, qname: Optional[str], attrs: AttributesNSImpl) -> None:
        self.flush_characters()

        scope = self._scopes[-1]
        if self._declared:
            scope = {**scope, **self._declared}
            self._declared = {}
        self._scopes.append(scope)

        attributes = tuple(
            XmlAttribute(_xml_name(pair, attrs.getQNameByName(pair)), value)
            for pair, value in attrs.items()
        )
        self._emit(XmlEvent.start_element(
            _xml_name(name, qname), attributes, scope, self.position()
        ))

    def endElementNS(self, name: _NamePair, qname: Optional[str]) -> None:
        self.flush_characters()
        self._scopes.pop()
        self._emit(XmlEvent.end_element(_xml_name(name, qname), self.position()))

    def characters(self, content: str) -> None:
        if not self._text_buffer:
            self._text_position = self.position()
        self._text_buffer.append(content)

    def processingInstruction(self, target: str, data: str) -> None:
        self.flush_characters()
        self._emit(XmlEvent.processing_instruction(target, data or None, self.position()))

    # LexicalHandler

    def comment(self, content: str) -> None:
        self.flush_characters()
        self._emit(XmlEvent.comment(content, self.position()))

    def startDTD(self, name: str, public_id: Optional[str], system_id: Optional[str]) -> None:
        self._emit(XmlEvent.doctype(name, self.position()))


def _iter_chunks(source: SourceType, chunk_size: int) -> Iterator[Union[str, bytes]]:
    if isinstance(source, Path):
        with source.open("rb") as handle:
            yield from _iter_file(handle, chunk_size)
    elif isinstance(source, (str, bytes, bytearray)):
        for start in range(0, len(source), chunk_size):
            chunk = source[start:start + chunk_size]
            yield bytes(chunk) if isinstance(chunk, bytearray) else chunk
    else:
        yield from _iter_file(source, chunk_size)


def _iter_file(handle: Union[IO[str], IO[bytes]], chunk_size: int) -> Iterator[Union[str, bytes]]:
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            return
        yield chunk


class XmlEventReader:
    """Iterator of ``XmlEvent`` over an XML document.

    Events parsed before a failure are always delivered first; the failure is
    then raised from ``__next__`` as an ``XmlReaderError`` and the reader is
    exhausted afterwards.

    Example:
        >>> reader = XmlEventReader('<a x="1">hi</a>')
        >>> [event.type.name for event in reader]
        ['START_DOCUMENT', 'START_ELEMENT', 'CHARACTERS', 'END_ELEMENT', 'END_DOCUMENT']
    """

    def __init__(
        self,
        source: SourceType,
        config: Optional[ReaderConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ReaderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_event_reader")

        if not isinstance(source, (str, bytes, bytearray, Path)) and not hasattr(source, "read"):
            raise TypeError(f"Unsupported XML source type: {type(source).__name__}")

        self._text_source = isinstance(source, str) or (
            hasattr(source, "read") and hasattr(source, "encoding")
        )
        self._chunks = _iter_chunks(source, self.config.chunk_size)

        self._pending: Deque[XmlEvent] = deque()
        self._parser = _EventParser(self.config)
        self._handler = _EventHandler(self._parser, self._emit)
        self._parser.setContentHandler(self._handler)
        self._parser.setProperty(property_lexical_handler, self._handler)

        self._finished = False
        self._error: Optional[XmlReaderError] = None
        self.events_emitted = 0

    def __iter__(self) -> "XmlEventReader":
        return self

    def __next__(self) -> XmlEvent:
        while not self._pending:
            if self._error is not None:
                error, self._error = self._error, None
                raise error
            if self._finished:
                raise StopIteration
            self._feed()
        return self._pending.popleft()

    def __enter__(self) -> "XmlEventReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the source and discard events not handed out yet."""
        self._chunks.close()
        self._pending.clear()
        self._handler.discard()
        self._error = None
        self._finished = True

    @property
    def finished(self) -> bool:
        """True once the source is exhausted and every event was handed out."""
        return self._finished and not self._pending and self._error is None

    def _feed(self) -> None:
        try:
            chunk = next(self._chunks, None)
        except (OSError, UnicodeDecodeError) as e:
            error = SourceReadError(f"Failed to read XML source: {e}", self._handler.position())
            error.__cause__ = e
            self._fail(error)
            return

        final = chunk is None
        try:
            if final:
                self._parser.feed("" if self._text_source else b"", True)
            else:
                self._parser.feed(chunk)
        except SAXParseException as e:
            self._fail(self._translate_parse_error(e, final))
            return
        except DefusedXmlException as e:
            self._fail(ForbiddenConstructError(
                f"Forbidden XML construct: {e}", e, self._handler.position()
            ))
            return

        if final:
            self._handler.flush_characters()
            self._emit(XmlEvent.end_document(self._handler.position()))
            self._finished = True

    def _fail(self, error: XmlReaderError) -> None:
        self._handler.flush_characters()
        self._error = error
        self._finished = True
        self._chunks.close()
        self.logger.warning(
            "XML reader stopped on error",
            extra={"error": str(error), "error_type": type(error).__name__},
        )

    def _translate_parse_error(self, error: SAXParseException, final: bool) -> XmlReaderError:
        code = getattr(error.getException(), "code", None)
        position = EventPosition(
            line=max(error.getLineNumber() or 1, 1),
            column=(error.getColumnNumber() or 0) + 1,
            offset=self._parser.getByteIndex(),
        )
        if final and code in _TRUNCATION_CODES:
            return UnexpectedEndOfInput(error.getMessage(), position, code)
        return XmlReaderError(error.getMessage(), position, code)

    def _emit(self, event: XmlEvent) -> None:
        self._pending.append(event)
        self.events_emitted += 1
