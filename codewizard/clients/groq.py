"""Groq chat-completions client with error parsing and context truncation."""

import json
import os
from dataclasses import dataclass, field
from functools import cache
from typing import Any

import httpx
import tiktoken
from pydantic import ValidationError

from codewizard.errors import UpstreamModelError
from codewizard.models.llm import ChatCompletion, LLMTool, Turn
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GroqConfig:
    """Configuration for the Groq API client."""

    base_url: str = field(default_factory=lambda: os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1"))
    timeout: float = field(default_factory=lambda: float(os.getenv("GROQ_TIMEOUT_SECONDS", "60")))
    max_tokens: int = 8000
    temperature: float = 0.2

    # Token budget for client-supplied history
    max_conversation_tokens: int = 120_000
    # None falls back to a 4-characters-per-token estimate
    tokenizer_encoding: str | None = "cl100k_base"


@cache
def load_tokenizer(encoding: str | None) -> tiktoken.Encoding | None:
    """Load a tiktoken encoding once per process.

    The first load may download the BPE file, so async callers should run this
    in a worker thread. A failed load is cached as None and not retried.
    """
    if not encoding:
        return None
    try:
        return tiktoken.get_encoding(encoding)
    except Exception:
        logger.warning(f"Tokenizer {encoding} unavailable, using length estimate")
        return None


def parse_error_message(status_code: int, body: str) -> str:
    """Best message for a failed completion call.

    Prefers ``error.message`` from a JSON body, then the raw body, then a
    generic status message.
    """
    message = f"Groq API error: {status_code}"
    try:
        data = json.loads(body)
    except ValueError:
        return body or message

    if isinstance(data, dict) and isinstance(data.get("error"), dict) and data["error"].get("message"):
        return str(data["error"]["message"])
    return message


class GroqClient:
    """Low-level client for an OpenAI-compatible chat-completions endpoint."""

    tokenizer: tiktoken.Encoding | None = None
    config: GroqConfig

    def __init__(
        self,
        api_key: str,
        config: GroqConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        tokenizer: tiktoken.Encoding | None = None,
    ):
        """Initialize Groq client.

        Args:
            api_key: Caller-supplied Groq API key
            config: Client configuration
            transport: Optional httpx transport (used by tests)
            tokenizer: Preloaded encoding; defaults to the cached one named in the config
        """
        if not api_key:
            raise ValueError("A Groq API key is required")

        self.config = config or GroqConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

        self.tokenizer = tokenizer if tokenizer is not None else load_tokenizer(self.config.tokenizer_encoding)

    def build_request(
        self,
        model: str,
        messages: list[Turn],
        tools: list[LLMTool] | None = None,
    ) -> dict[str, Any]:
        """Build the chat-completions request body."""
        request: dict[str, Any] = {
            "model": model,
            "messages": [message.to_wire() for message in messages],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "stream": False,
        }
        if tools:
            request["tools"] = [tool.to_wire() for tool in tools]
            request["tool_choice"] = "auto"
        return request

    async def create_completion(
        self,
        model: str,
        messages: list[Turn],
        tools: list[LLMTool] | None = None,
    ) -> ChatCompletion:
        """Request one complete (non-streamed) model response.

        Raises:
            UpstreamModelError: Transport failure, non-2xx status or malformed body
        """
        request = self.build_request(model, messages, tools)
        logger.debug(f"Creating completion with {len(messages)} messages, {len(tools) if tools else 0} tools")

        try:
            response = await self._client.post("/chat/completions", json=request)
        except httpx.HTTPError as e:
            raise UpstreamModelError(f"Groq request failed: {e}") from e

        if not response.is_success:
            message = parse_error_message(response.status_code, response.text)
            logger.warning(f"Groq API returned {response.status_code}: {message}")
            raise UpstreamModelError(message, status_code=response.status_code)

        try:
            completion = ChatCompletion.model_validate_json(response.content)
        except ValidationError as e:
            raise UpstreamModelError("Malformed response from Groq API", status_code=response.status_code) from e

        logger.debug(
            f"Response received - Finish reason: {completion.finish_reason}, "
            f"tool calls: {len(completion.message.tool_calls or [])}"
        )
        return completion

    def estimate_message_tokens(self, message: str) -> int:
        """Estimate token count for a single message.

        Args:
            message: Message content

        Returns:
            Estimated token count
        """
        try:
            return len(self.tokenizer.encode(message)) if self.tokenizer else len(message) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(message) // 4

    def truncate_conversation(self, messages: list[Turn], system_prompt: str) -> list[Turn]:
        """Drop the oldest turns until the history fits the context budget.

        The newest turn is always kept.

        Args:
            messages: Conversation turns, oldest first
            system_prompt: System prompt sent ahead of the turns

        Returns:
            Truncated turn list that fits within limits
        """
        if not messages:
            return messages

        available_tokens = (
            self.config.max_conversation_tokens - self.config.max_tokens - self.estimate_message_tokens(system_prompt)
        )

        truncated_messages: list[Turn] = []
        current_tokens = 0

        for message in reversed(messages):
            message_tokens = self.estimate_message_tokens(message.content or "")
            if truncated_messages and current_tokens + message_tokens > available_tokens:
                break
            truncated_messages.insert(0, message)
            current_tokens += message_tokens

        if len(truncated_messages) < len(messages):
            logger.warning(
                f"Truncated conversation from {len(messages)} to {len(truncated_messages)} messages "
                f"to fit within {available_tokens} token limit"
            )

        return truncated_messages

    async def aclose(self) -> None:
        await self._client.aclose()
