"""Tests for the document-level extension parser API."""

import io
from pathlib import Path

from xml_extension_dom.api import (
    ExtensionParser,
    capture_all_extensions,
    capture_extensions,
)
from xml_extension_dom.dom import Element, Text
from xml_extension_dom.reader import ForbiddenConstructError, SourceReadError
from xml_extension_dom.shared import ExtensionConfig
from xml_extension_dom.tree import ExtensionErrorKind

GPX = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<gpx xmlns="http://www.topografix.com/GPX/1/1">\n'
    '  <wpt lat="1" lon="2"><extensions><speed>4.5</speed></extensions></wpt>\n'
    '  <trk><name>t</name><extensions><color>red</color></extensions></trk>\n'
    '</gpx>\n'
)


def child_names(element: Element) -> list:
    return [child.name.local_name for child in element.children if isinstance(child, Element)]


class TestCaptureExtensions:
    """Test capturing the first region."""

    def test_first_region(self) -> None:
        result = capture_extensions(GPX)

        assert result.success
        assert child_names(result.element) == ["speed"]
        speed = result.element.children[0]
        assert speed.name.namespace == "http://www.topografix.com/GPX/1/1"
        assert speed.children == [Text("4.5")]

    def test_custom_root_tag(self) -> None:
        result = capture_extensions("<doc><ext><a/></ext></doc>", root_tag="ext")

        assert result.success
        assert child_names(result.element) == ["a"]

    def test_document_without_region(self) -> None:
        result = capture_extensions("<doc><a/></doc>")

        assert not result.success
        assert result.error.kind is ExtensionErrorKind.UNTERMINATED_ROOT

    def test_forbidden_construct_is_reader_error(self) -> None:
        """Test a DTD rejected by the strict preset surfaces as a reader error."""
        result = capture_extensions(
            "<!DOCTYPE doc><doc><extensions/></doc>", config=ExtensionConfig.strict()
        )

        assert result.error.kind is ExtensionErrorKind.UNDERLYING_READER_ERROR
        assert isinstance(result.error.cause, ForbiddenConstructError)

    def test_undecodable_file_is_reader_error(self) -> None:
        """Test a text file that fails to decode is reported, not raised."""
        source = io.TextIOWrapper(io.BytesIO(b"<extensions>\xff</extensions>"), encoding="utf-8")

        result = capture_extensions(source)

        assert result.error.kind is ExtensionErrorKind.UNDERLYING_READER_ERROR
        assert isinstance(result.error.cause, SourceReadError)

    def test_undecodable_file_in_capture_all(self) -> None:
        source = io.TextIOWrapper(io.BytesIO(b"<extensions>\xff</extensions>"), encoding="utf-8")

        results = capture_all_extensions(source)

        assert len(results) == 1
        assert results[0].error.kind is ExtensionErrorKind.UNDERLYING_READER_ERROR

    def test_file_sources(self, tmp_path: Path) -> None:
        path = tmp_path / "track.gpx"
        path.write_text(GPX, encoding="utf-8")

        assert capture_extensions(path).success
        assert capture_extensions(io.BytesIO(GPX.encode("utf-8"))).success

    def test_correlation_id(self) -> None:
        result = capture_extensions(GPX, correlation_id="doc-1")
        assert result.correlation_id == "doc-1"


class TestCaptureAll:
    """Test capturing every region of a document."""

    def test_all_regions_in_order(self) -> None:
        results = capture_all_extensions(GPX)

        assert [r.success for r in results] == [True, True]
        assert child_names(results[0].element) == ["speed"]
        assert child_names(results[1].element) == ["color"]

    def test_no_regions(self) -> None:
        assert capture_all_extensions("<doc/>") == []

    def test_stops_after_failed_region(self) -> None:
        """Test iteration ends with the first failed region."""
        source = "<doc><extensions><a></doc>"

        results = capture_all_extensions(source)

        assert len(results) == 1
        assert results[0].error.kind is ExtensionErrorKind.UNDERLYING_READER_ERROR

    def test_failure_before_any_region(self) -> None:
        results = capture_all_extensions("<doc><a></doc>")

        assert len(results) == 1
        assert not results[0].success

    def test_nested_duplicate_root(self) -> None:
        results = capture_all_extensions(
            "<doc><extensions><x><extensions/></x></extensions></doc>"
        )

        assert len(results) == 1
        assert results[0].error.kind is ExtensionErrorKind.DUPLICATE_ROOT_TAG


class TestExtensionParser:
    """Test the configured parser object."""

    def test_iter_extensions_is_lazy(self) -> None:
        parser = ExtensionParser()

        regions = parser.iter_extensions(GPX)
        first = next(regions)
        regions.close()

        assert child_names(first.element) == ["speed"]

    def test_reused_for_several_documents(self) -> None:
        parser = ExtensionParser(ExtensionConfig(root_tag="ext"))

        first = parser.capture("<a><ext>1</ext></a>")
        second = parser.capture("<b><ext>2</ext></b>")

        assert first.element.children == [Text("1")]
        assert second.element.children == [Text("2")]

    def test_legacy_config_drops_processing_instructions(self) -> None:
        parser = ExtensionParser(ExtensionConfig.legacy())

        result = parser.capture("<doc><extensions><?pi x?>t</extensions></doc>")

        assert result.element.children == [Text("t")]
        assert result.metrics.processing_instructions_dropped == 1
