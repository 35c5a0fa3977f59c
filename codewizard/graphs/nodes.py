"""Node implementations for the conversation loop."""

import json
from collections.abc import AsyncIterator, Iterator
from typing import Any

from codewizard.errors import ToolArgumentsError, UnknownToolError, UpstreamModelError
from codewizard.graphs.edges import hit_iteration_cap
from codewizard.graphs.state import RunContext, RunState
from codewizard.models.events import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TerminalEvent,
    TextDelta,
    ToolExecutionNotice,
    ToolInvocation,
    ToolResultEvent,
)
from codewizard.models.llm import LLMTool, ToolCallRequest, ToolResult
from codewizard.tools.base import display_name
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)

MAX_ITERATIONS_MESSAGE = "Max tool call iterations reached"


def split_display_tokens(text: str) -> list[str]:
    """Split text into word tokens that concatenate back to the original."""
    words = text.split(" ")
    return [words[0], *(f" {word}" for word in words[1:])]


def display_content(result: Any) -> str:
    """What the client shows for a successful tool result."""
    if isinstance(result, dict) and result.get("documentation"):
        return str(result["documentation"])
    return json.dumps(result, indent=2)


def notice_arguments(call: ToolCallRequest) -> dict[str, Any]:
    try:
        return call.parsed_arguments()
    except ToolArgumentsError:
        return {"raw": call.function.arguments}


async def execute_tool_call(call: ToolCallRequest, tools: dict[str, LLMTool]) -> ToolResult:
    """Run one tool call; failures become error results, never exceptions."""
    name = call.name
    shown = display_name(name)

    try:
        tool = tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        result = await tool.callable(call.parsed_arguments())
        payload = json.dumps(result)
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        return ToolResult(
            call_id=call.id,
            name=name,
            display_name=shown,
            content=f"Error: {e}",
            payload=json.dumps({"error": str(e)}),
            is_error=True,
        )

    logger.debug(f"Tool {name} succeeded: {payload[:100]}...")
    return ToolResult(
        call_id=call.id,
        name=name,
        display_name=shown,
        content=display_content(result),
        payload=payload,
    )


async def request_node(state: RunState, context: RunContext) -> None:
    """Ask the model for the next response and record it."""
    state.iteration += 1
    state.notice_sent = False
    logger.info(f"[{state.run_id}] Model call {state.iteration}/{context.max_iterations}")

    try:
        response = await context.client.create_completion(state.model, state.messages(), context.tool_list)
    except UpstreamModelError as e:
        logger.error(f"[{state.run_id}] Model call failed: {e.message}")
        state.error = e.message
        return

    state.response = response
    state.log.append(response.message.as_turn())


def decide_node(state: RunState) -> Iterator[TextDelta]:
    """Stream any text in the response before tool calls are considered."""
    content = state.response.message.content if state.response else None
    if not content or not content.strip():
        return

    for token in split_display_tokens(content):
        yield TextDelta(content=token)


async def execute_tools_node(state: RunState, context: RunContext) -> AsyncIterator[StreamEvent]:
    """Announce the requested calls once, then run them in order."""
    calls = state.response.message.tool_calls or []
    logger.info(f"[{state.run_id}] Model requested {len(calls)} tool calls")

    if not state.notice_sent:
        yield ToolExecutionNotice(
            calls=[ToolInvocation(name=display_name(call.name), args=notice_arguments(call)) for call in calls]
        )
        state.notice_sent = True

    for call in calls:
        result = await execute_tool_call(call, context.tools)
        yield ToolResultEvent(name=result.display_name, content=result.content, is_error=result.is_error)
        state.log.append(result.as_turn())


def terminal_event(state: RunState) -> TerminalEvent:
    """The single event that closes the stream."""
    if state.error:
        return ErrorEvent(message=state.error)
    if hit_iteration_cap(state):
        return ErrorEvent(message=MAX_ITERATIONS_MESSAGE)
    return DoneEvent()
