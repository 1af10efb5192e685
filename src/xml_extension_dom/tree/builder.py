"""Extension consumer: builds a DOM tree from a bounded region of reader events.

The consumer pulls events from a caller-owned stream until the configured
root tag closes, keeping open elements on an explicit stack so that memory
and call depth do not grow with untrusted nesting. Failures are returned as
classified ``ExtensionError`` values; nothing is raised for malformed input.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional

from xml_extension_dom.dom import (
    Comment,
    Element,
    Node,
    ProcessingInstruction,
    Text,
)
from xml_extension_dom.reader import (
    EventPosition,
    EventType,
    XmlEvent,
)
from xml_extension_dom.shared import (
    CaptureMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtensionConfig,
    get_logger,
)

_COMPONENT = "extension_consumer"


class ConsumerState(Enum):
    """States of one consumption call."""

    NOT_STARTED = auto()    # Root tag not seen yet
    IN_PROGRESS = auto()    # Root open, stack non-empty
    DONE = auto()           # Root closed, tree handed to the caller


class ExtensionErrorKind(Enum):
    """Classification of a failed consumption."""

    DUPLICATE_ROOT_TAG = auto()         # Root opened again before it closed
    MALFORMED_EXTENSION = auto()        # Closing tag does not match the open element
    UNTERMINATED_ROOT = auto()          # Stream ended before the root closed
    UNDERLYING_READER_ERROR = auto()    # The event source itself failed


@dataclass
class ExtensionError:
    """A classified consumption failure.

    For ``UNDERLYING_READER_ERROR`` the exception raised by the event source
    is kept unchanged as ``cause``.
    """

    kind: ExtensionErrorKind
    message: str
    tag: Optional[str] = None
    position: Optional[EventPosition] = None
    cause: Optional[Exception] = None

    def __str__(self) -> str:
        if self.position is None:
            return f"{self.kind.name}: {self.message}"
        return (
            f"{self.kind.name}: {self.message} "
            f"(line {self.position.line}, column {self.position.column})"
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.name, "message": self.message}
        if self.tag is not None:
            result["tag"] = self.tag
        if self.position is not None:
            result["position"] = self.position.to_dict()
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result


class ExtensionConsumeError(Exception):
    """Raised by ``ConsumeResult.unwrap`` for a failed consumption."""

    def __init__(self, error: ExtensionError) -> None:
        super().__init__(str(error))
        self.error = error
        self.kind = error.kind


@dataclass
class ConsumeResult:
    """Outcome of one consumption: either a completed element or an error.

    ``state`` records where the consumer stopped; a completed region is
    always ``DONE``, a failure keeps the state it failed in.
    """

    element: Optional[Element] = None
    error: Optional[ExtensionError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: CaptureMetrics = field(default_factory=CaptureMetrics)
    correlation_id: Optional[str] = None
    state: Optional[ConsumerState] = None

    def __post_init__(self) -> None:
        """Validate that exactly one of element and error is set."""
        if (self.element is None) == (self.error is None):
            raise ValueError("ConsumeResult needs exactly one of element or error")

    @property
    def success(self) -> bool:
        return self.error is None

    def unwrap(self) -> Element:
        """Return the element, raising ``ExtensionConsumeError`` on failure."""
        if self.error is not None:
            raise ExtensionConsumeError(self.error)
        return self.element

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str = _COMPONENT,
        position: Optional[EventPosition] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position.to_dict() if position else None,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the consumption."""
        summary: Dict[str, Any] = {
            "success": self.success,
            "metrics": self.metrics.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if self.state is not None:
            summary["state"] = self.state.name
        if self.element is not None:
            summary["root"] = str(self.element.name)
        if self.error is not None:
            summary["error"] = self.error.to_dict()
        return summary


class ExtensionConsumer:
    """Captures one extension region from an event stream as a DOM tree.

    The instance only holds configuration and a logger; every call to
    ``consume`` works on its own stack, so one consumer can be reused.

    Example:
        >>> from xml_extension_dom.reader import XmlEventReader
        >>> result = ExtensionConsumer().consume(
        ...     XmlEventReader("<extensions><a>1</a></extensions>"))
        >>> result.element.children[0].name.local_name
        'a'
    """

    def __init__(
        self,
        config: Optional[ExtensionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ExtensionConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, _COMPONENT)

    @property
    def root_tag(self) -> str:
        return self.config.root_tag

    def consume(self, events: Iterable[XmlEvent]) -> ConsumeResult:
        """Consume events up to and including the root's closing tag.

        Args:
            events: Event stream; iteration stops right after the root's
                end-element event, leaving the rest of the stream unread

        Returns:
            ConsumeResult with the completed root element, or the first error
        """
        start_time = time.time()
        metrics = CaptureMetrics()
        diagnostics: List[DiagnosticEntry] = []
        state = ConsumerState.NOT_STARTED
        stack: List[Element] = []
        root_tag = self.config.root_tag

        def finish(
            element: Optional[Element] = None,
            error: Optional[ExtensionError] = None,
        ) -> ConsumeResult:
            metrics.processing_time_ms = (time.time() - start_time) * 1000
            result = ConsumeResult(
                element=element,
                error=error,
                diagnostics=diagnostics,
                metrics=metrics,
                correlation_id=self.correlation_id,
                state=state,
            )
            if error is not None:
                result.add_diagnostic(
                    DiagnosticSeverity.ERROR,
                    error.message,
                    position=error.position,
                    details={"kind": error.kind.name},
                )
                self.logger.warning(
                    "Extension capture failed",
                    extra={"error_kind": error.kind.name, "error": error.message},
                )
            else:
                self.logger.debug(
                    "Extension capture completed",
                    extra=metrics.to_dict(),
                )
            return result

        def fail(
            kind: ExtensionErrorKind,
            message: str,
            event: Optional[XmlEvent] = None,
            cause: Optional[Exception] = None,
        ) -> ConsumeResult:
            tag = None
            position = getattr(cause, "position", None)
            if event is not None:
                tag = str(event.name) if event.name else None
                position = event.position
            return finish(error=ExtensionError(kind, message, tag, position, cause))

        iterator = iter(events)
        while True:
            try:
                event = next(iterator)
            except StopIteration:
                break
            except Exception as e:
                return fail(
                    ExtensionErrorKind.UNDERLYING_READER_ERROR,
                    f"Event source failed: {e}",
                    cause=e,
                )

            metrics.events_processed += 1

            if state is ConsumerState.NOT_STARTED:
                if (
                    event.type is EventType.START_ELEMENT
                    and event.name.local_name == root_tag
                ):
                    stack.append(Element.with_local_name(root_tag))
                    state = ConsumerState.IN_PROGRESS
                    metrics.observe_depth(1)
                    self.logger.debug(
                        "Extension region opened",
                        extra={
                            "root_tag": root_tag,
                            "position": event.position.to_dict() if event.position else None,
                        },
                    )
                else:
                    metrics.events_skipped += 1
                continue

            if event.type is EventType.START_ELEMENT:
                if event.name.local_name == root_tag:
                    return fail(
                        ExtensionErrorKind.DUPLICATE_ROOT_TAG,
                        f"<{root_tag}> opened again before it was closed",
                        event,
                    )
                stack.append(Element.new(event.name, event.attributes, event.namespace))
                metrics.elements_created += 1
                metrics.observe_depth(len(stack))

            elif event.type is EventType.END_ELEMENT:
                if event.name.local_name == root_tag:
                    if len(stack) != 1:
                        return fail(
                            ExtensionErrorKind.MALFORMED_EXTENSION,
                            f"</{root_tag}> closed while <{stack[-1].name}> is still open",
                            event,
                        )
                    state = ConsumerState.DONE
                    return finish(element=stack.pop())

                element = stack.pop()
                if element.name != event.name:
                    return fail(
                        ExtensionErrorKind.MALFORMED_EXTENSION,
                        f"</{event.name}> does not close <{element.name}>",
                        event,
                    )
                # The root shell never matches a non-root name, so the stack
                # still holds at least the shell here.
                stack[-1].append(element)

            elif event.type is EventType.CHARACTERS:
                self._attach(stack, Text(event.text or ""))
                metrics.text_nodes += 1

            elif event.type is EventType.COMMENT:
                self._attach(stack, Comment(event.text or ""))
                metrics.comments += 1

            elif event.type is EventType.PROCESSING_INSTRUCTION:
                if self.config.preserve_processing_instructions:
                    self._attach(stack, ProcessingInstruction(event.target or "", event.text))
                    metrics.processing_instructions += 1
                else:
                    metrics.processing_instructions_dropped += 1
                    diagnostics.append(DiagnosticEntry(
                        severity=DiagnosticSeverity.WARNING,
                        message=f"Dropped processing instruction <?{event.target}?>",
                        component=_COMPONENT,
                        position=event.position.to_dict() if event.position else None,
                        correlation_id=self.correlation_id,
                    ))

            else:
                metrics.events_skipped += 1

        if state is ConsumerState.NOT_STARTED:
            message = f"Stream ended before <{root_tag}> was opened"
        else:
            message = f"Stream ended before <{root_tag}> was closed"
        return fail(ExtensionErrorKind.UNTERMINATED_ROOT, message)

    @staticmethod
    def _attach(stack: List[Element], node: Node) -> None:
        stack[-1].append(node)


def consume(
    events: Iterable[XmlEvent],
    root_tag: Optional[str] = None,
    config: Optional[ExtensionConfig] = None,
    correlation_id: Optional[str] = None,
) -> ConsumeResult:
    """Capture one extension region from ``events``.

    Args:
        events: Event stream positioned at or before the root start tag
        root_tag: Local name bounding the region (overrides ``config``)
        config: Optional consumer configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ConsumeResult with the root element or a classified error
    """
    config = config or ExtensionConfig()
    if root_tag is not None and root_tag != config.root_tag:
        config = config.override(root_tag=root_tag)
    return ExtensionConsumer(config, correlation_id).consume(events)
