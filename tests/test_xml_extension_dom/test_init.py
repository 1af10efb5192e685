"""Tests for the package's public interface."""

import xml_extension_dom


class TestPublicInterface:
    """Test the top-level exports."""

    def test_version(self) -> None:
        assert xml_extension_dom.__version__ == "0.1.0"

    def test_all_exports_exist(self) -> None:
        for name in xml_extension_dom.__all__:
            assert hasattr(xml_extension_dom, name), name

    def test_simple_capture(self) -> None:
        """Test the one-call capture entry point."""
        result = xml_extension_dom.capture_extensions(
            "<doc><extensions><a>1</a></extensions></doc>"
        )

        assert result.success
        assert isinstance(result.element, xml_extension_dom.Element)
        assert result.element.children[0].children == [xml_extension_dom.Text("1")]
