"""Tests for the streaming XML event reader."""

import io
from pathlib import Path

import pytest
from defusedxml.common import DefusedXmlException, DTDForbidden, EntitiesForbidden

from xml_extension_dom.reader import (
    EventPosition,
    EventType,
    ForbiddenConstructError,
    SourceReadError,
    UnexpectedEndOfInput,
    XmlAttribute,
    XmlEvent,
    XmlEventReader,
    XmlName,
    XmlReaderError,
)
from xml_extension_dom.shared import ReaderConfig


def event_types(reader: XmlEventReader) -> list:
    return [event.type for event in reader]


class FailingFile:
    """Binary file object whose reads fail once its data is used up."""

    def __init__(self, data: bytes, error: Exception) -> None:
        self._data = data
        self._error = error

    def read(self, size: int) -> bytes:
        if self._data:
            data, self._data = self._data, b""
            return data
        raise self._error


class TestEventSequence:
    """Test the events produced for well-formed input."""

    def test_basic_document(self) -> None:
        """Test the event order for a small document."""
        assert event_types(XmlEventReader('<a x="1">hi<b/></a>')) == [
            EventType.START_DOCUMENT,
            EventType.START_ELEMENT,
            EventType.CHARACTERS,
            EventType.START_ELEMENT,
            EventType.END_ELEMENT,
            EventType.END_ELEMENT,
            EventType.END_DOCUMENT,
        ]

    def test_start_element_details(self) -> None:
        """Test names and attributes of a start element."""
        events = list(XmlEventReader('<a x="1" y="two"/>'))
        start = events[1]

        assert start.name == XmlName("a")
        assert start.attributes == (
            XmlAttribute(XmlName("x"), "1"),
            XmlAttribute(XmlName("y"), "two"),
        )
        assert start.namespace == {}

    def test_comment_and_processing_instruction(self) -> None:
        """Test comment text and PI target and data."""
        events = list(XmlEventReader("<a><!-- c --><?pi some data?><?empty?></a>"))

        assert events[2].type is EventType.COMMENT
        assert events[2].text == " c "
        assert events[3].target == "pi"
        assert events[3].text == "some data"
        assert events[4].target == "empty"
        assert events[4].text is None

    def test_characters_are_coalesced(self) -> None:
        """Test text split across chunks and markup arrives as one event."""
        config = ReaderConfig(chunk_size=3)
        events = list(XmlEventReader("<a>one &lt;two&gt; <![CDATA[three]]></a>", config))

        characters = [event for event in events if event.type is EventType.CHARACTERS]
        assert len(characters) == 1
        assert characters[0].text == "one <two> three"

    def test_doctype_event(self) -> None:
        """Test a DOCTYPE is reported when DTDs are allowed."""
        events = list(XmlEventReader("<!DOCTYPE a><a/>"))

        assert events[1].type is EventType.DOCTYPE
        assert events[1].text == "a"

    def test_events_emitted_and_finished(self) -> None:
        """Test the emitted counter and finished flag."""
        reader = XmlEventReader("<a/>")
        assert not reader.finished

        events = list(reader)

        assert reader.events_emitted == len(events) == 4
        assert reader.finished


class TestNamespaces:
    """Test namespace resolution."""

    def test_prefixed_names(self) -> None:
        """Test prefixed element and attribute names carry URI and prefix."""
        events = list(XmlEventReader('<r xmlns:g="urn:g"><g:a g:k="v"/></r>'))
        child = events[2]

        assert child.name == XmlName("a", "urn:g", "g")
        assert child.attributes[0].name == XmlName("k", "urn:g", "g")
        assert child.namespace == {"g": "urn:g"}

    def test_default_namespace(self) -> None:
        """Test the default namespace is stored under the empty prefix."""
        events = list(XmlEventReader('<r xmlns="urn:d"><a/></r>'))

        assert events[1].name == XmlName("r", "urn:d")
        assert events[1].namespace == {"": "urn:d"}
        assert events[2].name == XmlName("a", "urn:d")

    def test_scopes_are_popped(self) -> None:
        """Test declarations do not leak past their element."""
        events = list(XmlEventReader('<r><a xmlns:p="urn:p"/><b/></r>'))
        starts = [event for event in events if event.type is EventType.START_ELEMENT]

        assert starts[1].namespace == {"p": "urn:p"}
        assert starts[2].namespace == {}

    def test_prefix_kept_when_uri_is_bound_twice(self) -> None:
        """Test each element keeps the prefix written in the source."""
        events = list(XmlEventReader(
            '<r xmlns:a="urn:same" xmlns:b="urn:same"><a:x/><b:x/></r>'
        ))
        starts = [event for event in events if event.type is EventType.START_ELEMENT]
        ends = [event for event in events if event.type is EventType.END_ELEMENT]

        assert starts[1].name == XmlName("x", "urn:same", "a")
        assert starts[2].name == XmlName("x", "urn:same", "b")
        assert ends[0].name == XmlName("x", "urn:same", "a")

    def test_xml_prefix_attribute(self) -> None:
        events = list(XmlEventReader('<r xml:lang="en"/>'))

        assert events[1].attributes[0].name == XmlName(
            "lang", "http://www.w3.org/XML/1998/namespace", "xml"
        )
        assert events[1].namespace == {}


class TestSources:
    """Test the accepted source types."""

    DOCUMENT = "<a>é</a>"

    def text_of(self, reader: XmlEventReader) -> str:
        return next(event.text for event in reader if event.type is EventType.CHARACTERS)

    def test_str(self) -> None:
        assert self.text_of(XmlEventReader(self.DOCUMENT)) == "é"

    def test_bytes_and_bytearray(self) -> None:
        data = self.DOCUMENT.encode("utf-8")
        assert self.text_of(XmlEventReader(data)) == "é"
        assert self.text_of(XmlEventReader(bytearray(data))) == "é"

    def test_declared_encoding(self) -> None:
        """Test bytes in a declared non-UTF-8 encoding."""
        data = b'<?xml version="1.0" encoding="ISO-8859-1"?><a>\xe9</a>'
        assert self.text_of(XmlEventReader(data)) == "é"

    def test_file_objects(self) -> None:
        assert self.text_of(XmlEventReader(io.StringIO(self.DOCUMENT))) == "é"
        assert self.text_of(
            XmlEventReader(io.BytesIO(self.DOCUMENT.encode("utf-8")))
        ) == "é"

    def test_path(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.xml"
        path.write_text(self.DOCUMENT, encoding="utf-8")
        assert self.text_of(XmlEventReader(path)) == "é"

    def test_unsupported_source(self) -> None:
        with pytest.raises(TypeError, match="Unsupported XML source type"):
            XmlEventReader(42)


class TestErrors:
    """Test failure reporting."""

    def test_events_before_error_are_delivered(self) -> None:
        """Test the error is raised only after the preceding events."""
        reader = XmlEventReader("<a><b>text</c></a>")
        seen = []

        with pytest.raises(XmlReaderError) as exc_info:
            for event in reader:
                seen.append(event.type)

        assert seen == [
            EventType.START_DOCUMENT,
            EventType.START_ELEMENT,
            EventType.START_ELEMENT,
            EventType.CHARACTERS,
        ]
        assert exc_info.value.position.line == 1
        assert exc_info.value.code is not None

    def test_reader_is_exhausted_after_error(self) -> None:
        """Test iteration stops after the error was raised once."""
        reader = XmlEventReader("<a></b>")

        with pytest.raises(XmlReaderError):
            list(reader)

        assert list(reader) == []

    def test_truncated_input(self) -> None:
        """Test input ending inside an element."""
        with pytest.raises(UnexpectedEndOfInput):
            list(XmlEventReader("<a><b>"))

    def test_entity_declaration_forbidden(self) -> None:
        """Test entity declarations are rejected by default."""
        with pytest.raises(ForbiddenConstructError) as exc_info:
            list(XmlEventReader('<!DOCTYPE a [<!ENTITY e "boom">]><a>&e;</a>'))

        assert isinstance(exc_info.value.forbidden, EntitiesForbidden)

    def test_dtd_forbidden_when_configured(self) -> None:
        """Test DOCTYPE rejection with forbid_dtd."""
        reader = XmlEventReader("<!DOCTYPE a><a/>", ReaderConfig(forbid_dtd=True))

        with pytest.raises(ForbiddenConstructError) as exc_info:
            list(reader)

        assert isinstance(exc_info.value.forbidden, DTDForbidden)
        assert isinstance(exc_info.value.forbidden, DefusedXmlException)

    def test_failing_read_raises_source_error(self) -> None:
        """Test an OSError from read() arrives as SourceReadError after earlier events."""
        disk_error = OSError("disk gone")
        reader = XmlEventReader(FailingFile(b"<a><b>", disk_error))
        seen = []

        with pytest.raises(SourceReadError) as exc_info:
            for event in reader:
                seen.append(event.type)

        assert seen == [
            EventType.START_DOCUMENT,
            EventType.START_ELEMENT,
            EventType.START_ELEMENT,
        ]
        assert exc_info.value.__cause__ is disk_error
        assert isinstance(exc_info.value, XmlReaderError)
        assert list(reader) == []

    def test_undecodable_text_file(self) -> None:
        """Test a decoding failure inside a text file object."""
        source = io.TextIOWrapper(io.BytesIO(b"<a>\xff</a>"), encoding="utf-8")

        with pytest.raises(SourceReadError) as exc_info:
            list(XmlEventReader(source))

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_error_string_includes_position(self) -> None:
        error = XmlReaderError("bad", EventPosition(line=2, column=5, offset=9))
        assert str(error) == "bad (line 2, column 5)"


class TestPositions:
    """Test event positions."""

    def test_element_positions(self) -> None:
        """Test line and column of start elements."""
        events = list(XmlEventReader("<a>\n  <b/>\n</a>"))
        starts = [event for event in events if event.type is EventType.START_ELEMENT]

        assert starts[0].position.line == 1
        assert starts[0].position.column == 1
        assert starts[1].position.line == 2
        assert starts[1].position.column == 3

    def test_position_validation(self) -> None:
        with pytest.raises(ValueError, match="Line number"):
            EventPosition(line=0, column=1, offset=0)
        with pytest.raises(ValueError, match="Column number"):
            EventPosition(line=1, column=0, offset=0)


class TestLifecycle:
    """Test closing the reader."""

    def test_close_stops_iteration(self) -> None:
        reader = XmlEventReader("<a><b/></a>")
        next(reader)

        reader.close()

        assert list(reader) == []

    def test_context_manager_closes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.xml"
        path.write_text("<a>" + "<b/>" * 1000 + "</a>", encoding="utf-8")

        with XmlEventReader(path, ReaderConfig(chunk_size=16)) as reader:
            first = next(reader)

        assert first.type is EventType.START_DOCUMENT
        assert list(reader) == []


class TestXmlEvent:
    """Test event construction helpers."""

    def test_string_forms(self) -> None:
        assert str(XmlEvent.start_element(XmlName("a", "urn:x", "x"))) == "<x:a>"
        assert str(XmlEvent.end_element(XmlName("a"))) == "</a>"
        assert str(XmlEvent.processing_instruction("t", "d")) == "<?t?>"
        assert str(XmlEvent.characters("x")) == "CHARACTERS"

    def test_start_element_copies_namespace(self) -> None:
        scope = {"p": "urn:p"}
        event = XmlEvent.start_element(XmlName("a"), namespace=scope)
        scope["q"] = "urn:q"

        assert event.namespace == {"p": "urn:p"}
