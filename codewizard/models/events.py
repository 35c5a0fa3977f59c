"""Events emitted by the conversation driver."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TextDelta:
    """One fragment of assistant text."""

    content: str


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call as shown to the client."""

    name: str
    args: dict[str, Any]


@dataclass(frozen=True)
class ToolExecutionNotice:
    """Every tool call requested by one model response."""

    calls: list[ToolInvocation] = field(default_factory=list)


@dataclass(frozen=True)
class ToolResultEvent:
    """Result of one completed tool call."""

    name: str
    content: str
    is_error: bool = False


@dataclass(frozen=True)
class DoneEvent:
    """The run completed normally."""


@dataclass(frozen=True)
class ErrorEvent:
    """The run ended with an error."""

    message: str


StreamEvent = TextDelta | ToolExecutionNotice | ToolResultEvent | DoneEvent | ErrorEvent
TerminalEvent = DoneEvent | ErrorEvent
