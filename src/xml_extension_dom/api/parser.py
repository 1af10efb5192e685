"""Host-document API: locate extension regions in an XML document and capture them.

This plays the part of the surrounding document parser. It owns the event
reader, hands it to an ``ExtensionConsumer`` for each region, and continues
reading after every region the consumer closes.
"""

from typing import Iterator, List, Optional

from xml_extension_dom.reader import SourceType, XmlEventReader
from xml_extension_dom.shared import ExtensionConfig, get_logger
from xml_extension_dom.tree import (
    ConsumeResult,
    ConsumerState,
    ExtensionConsumer,
    ExtensionErrorKind,
)


def _region_missing(result: ConsumeResult) -> bool:
    """True when the stream ended without the root tag ever opening."""
    return (
        result.error is not None
        and result.error.kind is ExtensionErrorKind.UNTERMINATED_ROOT
        and result.state is ConsumerState.NOT_STARTED
    )


class ExtensionParser:
    """Captures extension regions from whole XML documents.

    Example:
        >>> parser = ExtensionParser()
        >>> results = parser.capture_all(
        ...     "<gpx><wpt><extensions><a/></extensions></wpt>"
        ...     "<trk><extensions><b/></extensions></trk></gpx>")
        >>> [r.element.children[0].name.local_name for r in results]
        ['a', 'b']
    """

    def __init__(
        self,
        config: Optional[ExtensionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ExtensionConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "extension_parser")
        self.consumer = ExtensionConsumer(self.config, self.correlation_id)

    def _reader(self, source: SourceType) -> XmlEventReader:
        return XmlEventReader(source, self.config.reader, self.correlation_id)

    def capture(self, source: SourceType) -> ConsumeResult:
        """Capture the first extension region of ``source``.

        When the document has no region the result carries an
        ``UNTERMINATED_ROOT`` error.
        """
        with self._reader(source) as reader:
            return self.consumer.consume(reader)

    def iter_extensions(self, source: SourceType) -> Iterator[ConsumeResult]:
        """Yield one result per extension region, in document order.

        Iteration stops after the first failed region, since the reader's
        position inside a broken region is not meaningful.
        """
        with self._reader(source) as reader:
            regions = 0
            while True:
                result = self.consumer.consume(reader)
                if _region_missing(result):
                    break
                regions += 1
                yield result
                if not result.success:
                    self.logger.warning(
                        "Stopping after failed extension region",
                        extra={"region_index": regions - 1},
                    )
                    break

        self.logger.info(
            "Extension scan finished",
            extra={"regions": regions, "events_read": reader.events_emitted},
        )

    def capture_all(self, source: SourceType) -> List[ConsumeResult]:
        """Capture every extension region of ``source``."""
        return list(self.iter_extensions(source))


def capture_extensions(
    source: SourceType,
    root_tag: Optional[str] = None,
    config: Optional[ExtensionConfig] = None,
    correlation_id: Optional[str] = None,
) -> ConsumeResult:
    """Capture the first extension region from an XML source.

    Args:
        source: XML content as str, bytes, Path or file object
        root_tag: Local name bounding the region (default ``"extensions"``)
        config: Optional configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ConsumeResult with the captured element or a classified error

    Examples:
        >>> result = capture_extensions('<extensions>hi<a/></extensions>')
        >>> result.success
        True
        >>> result.element.children[0].content
        'hi'
    """
    return ExtensionParser(_with_root_tag(config, root_tag), correlation_id).capture(source)


def capture_all_extensions(
    source: SourceType,
    root_tag: Optional[str] = None,
    config: Optional[ExtensionConfig] = None,
    correlation_id: Optional[str] = None,
) -> List[ConsumeResult]:
    """Capture every extension region from an XML source, in document order."""
    return ExtensionParser(_with_root_tag(config, root_tag), correlation_id).capture_all(source)


def _with_root_tag(config: Optional[ExtensionConfig], root_tag: Optional[str]) -> ExtensionConfig:
    config = config or ExtensionConfig()
    if root_tag is not None and root_tag != config.root_tag:
        config = config.override(root_tag=root_tag)
    return config
