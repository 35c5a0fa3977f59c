"""Serializes driver events into ``data:`` frames for the browser client."""

import json
from typing import Any

from codewizard.models.events import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TextDelta,
    ToolExecutionNotice,
    ToolResultEvent,
)

DONE_FRAME = "data: [DONE]\n\n"


class FramerClosedError(RuntimeError):
    """An event was framed after the stream's terminal frame."""


def encode_frame(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, separators=(',', ':'), ensure_ascii=False)}\n\n"


def _delta(delta: dict[str, Any]) -> dict[str, Any]:
    return {"choices": [{"delta": delta}]}


class StreamFramer:
    """Frames one run's events; closes itself after a terminal frame."""

    def __init__(self):
        self.closed = False

    def frame(self, event: StreamEvent) -> str:
        """Render one event.

        Raises:
            FramerClosedError: If a terminal frame was already produced
        """
        if self.closed:
            raise FramerClosedError(f"Cannot frame {type(event).__name__} after the terminal frame")

        if isinstance(event, TextDelta):
            return encode_frame(_delta({"content": event.content}))

        if isinstance(event, ToolExecutionNotice):
            calls = [{"name": call.name, "args": call.args} for call in event.calls]
            return encode_frame(_delta({"tool_execution": calls}))

        if isinstance(event, ToolResultEvent):
            result: dict[str, Any] = {"name": event.name, "content": event.content}
            if event.is_error:
                result["error"] = True
            return encode_frame(_delta({"tool_result": result}))

        if isinstance(event, DoneEvent):
            self.closed = True
            return DONE_FRAME

        if isinstance(event, ErrorEvent):
            self.closed = True
            return encode_frame({"error": event.message})

        raise TypeError(f"Unsupported stream event: {event!r}")

    def close(self) -> None:
        self.closed = True
