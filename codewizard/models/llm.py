"""LLM-related data models and types (OpenAI-compatible chat completions)."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from codewizard.errors import ToolArgumentsError


class ToolCallFunction(BaseModel):
    """Function name and JSON-encoded arguments of a tool call."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    arguments: str = "{}"


class ToolCallRequest(BaseModel):
    """A tool call issued by the model."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction

    @property
    def name(self) -> str:
        return self.function.name

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode the argument blob.

        Raises:
            ToolArgumentsError: If the blob is not a JSON object
        """
        raw = self.function.arguments or "{}"
        try:
            args = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ToolArgumentsError(f"Invalid arguments for {self.name}: {e.msg}") from e

        if not isinstance(args, dict):
            raise ToolArgumentsError(f"Arguments for {self.name} must be a JSON object")
        return args


class Turn(BaseModel):
    """One message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system", "tool"]
    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Render the turn in chat-completions message format."""
        message: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [call.model_dump() for call in self.tool_calls]
        if self.tool_call_id is not None:
            message["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            message["name"] = self.name
        return message


class CompletionMessage(BaseModel):
    """Assistant message returned by the model."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["assistant"] = "assistant"
    content: str | None = None
    tool_calls: list[ToolCallRequest] | None = None

    def as_turn(self) -> Turn:
        return Turn(
            role="assistant",
            content=self.content,
            tool_calls=tuple(self.tool_calls) if self.tool_calls else None,
        )


class CompletionChoice(BaseModel):
    """A single choice in a chat-completions response."""

    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: CompletionMessage
    finish_reason: str | None = None


class CompletionUsage(BaseModel):
    """Token usage reported by the model endpoint."""

    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletion(BaseModel):
    """Non-streaming chat-completions response body."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    model: str | None = None
    choices: list[CompletionChoice] = Field(min_length=1)
    usage: CompletionUsage | None = None

    @property
    def message(self) -> CompletionMessage:
        return self.choices[0].message

    @property
    def finish_reason(self) -> str | None:
        return self.choices[0].finish_reason

    @property
    def requests_tools(self) -> bool:
        """Whether the model stopped to have tools executed."""
        return self.finish_reason == "tool_calls" and bool(self.message.tool_calls)


@dataclass
class LLMTool:
    """Tool with both schema and callable."""

    name: str
    description: str
    parameters: dict[str, Any]
    callable: Callable[[dict[str, Any]], Awaitable[Any]]

    def to_wire(self) -> dict[str, Any]:
        """Render the tool in chat-completions ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class ToolResult:
    """Outcome of executing one tool call.

    ``content`` is what the client displays; ``payload`` is the verbatim JSON
    recorded in the conversation for the model.
    """

    call_id: str
    name: str
    display_name: str
    content: str
    payload: str
    is_error: bool = False

    def as_turn(self) -> Turn:
        return Turn(role="tool", content=self.payload, tool_call_id=self.call_id, name=self.name)
