"""Context7 documentation service client."""

import json
import os
from dataclasses import dataclass, field
from typing import Any

import httpx
from cuid2 import cuid_wrapper

from codewizard.clients.sse import decode_sse_envelope, envelope_error_message
from codewizard.errors import RemoteServiceError
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

RESOLVE_LIBRARY_TOOL = "resolve-library-id"
LIBRARY_DOCS_TOOL = "get-library-docs"

DEFAULT_DOC_TOKENS = 10000
MAX_DOCUMENTATION_CHARS = 10000
TRUNCATION_MARKER = " (truncated)"
CODE_FENCE = "```"


@dataclass
class DocsServiceConfig:
    """Configuration for the documentation service client."""

    url: str = field(default_factory=lambda: os.getenv("CONTEXT7_MCP_URL", "https://mcp.context7.com/mcp"))
    timeout: float = field(default_factory=lambda: float(os.getenv("CONTEXT7_TIMEOUT_SECONDS", "30")))
    doc_tokens: int = DEFAULT_DOC_TOKENS
    max_documentation_chars: int = MAX_DOCUMENTATION_CHARS


def normalize_documentation(content: Any) -> str:
    """Flatten the shapes the service returns into one string."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(_fragment_text(item) for item in content)
    if isinstance(content, dict):
        return json.dumps(content)
    return str(content or "")


def _fragment_text(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("text") or item.get("content") or "")
    return ""


def truncate_documentation(text: str, limit: int = MAX_DOCUMENTATION_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def count_code_snippets(text: str) -> int:
    """Approximate number of fenced code blocks."""
    return max(0, text.count(CODE_FENCE) - 1)


class DocsServiceClient:
    """Calls the two documentation tools exposed by the Context7 MCP endpoint.

    Each call is a single JSON-RPC ``tools/call`` request whose response is an
    SSE body. There are no retries; any failure raises RemoteServiceError.
    """

    def __init__(self, config: DocsServiceConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the client.

        Args:
            config: Client configuration
            transport: Optional httpx transport (used by tests)
        """
        self.config = config or DocsServiceConfig()
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json, text/event-stream",
            },
        )

    async def resolve_library_id(self, library_name: str) -> Any:
        """Resolve a library name to Context7-compatible identifiers.

        Returns:
            The service's ``result.content`` as-is
        """
        envelope = await self._call_tool(RESOLVE_LIBRARY_TOOL, {"libraryName": library_name})
        return (envelope.get("result") or {}).get("content") or {}

    async def fetch_documentation(self, library_id: str, topic: str | None = None) -> dict[str, Any]:
        """Fetch documentation text for a resolved library identifier.

        Args:
            library_id: Context7-compatible library ID (e.g. ``/vercel/next.js``)
            topic: Optional topic to focus the documentation on

        Returns:
            Mapping with ``libraryId``, ``documentation``, ``codeSnippets`` and ``topic``
        """
        arguments: dict[str, Any] = {"context7CompatibleLibraryID": library_id}
        if topic:
            arguments["topic"] = topic
        arguments["tokens"] = self.config.doc_tokens

        envelope = await self._call_tool(LIBRARY_DOCS_TOOL, arguments)
        content = (envelope.get("result") or {}).get("content")

        documentation = truncate_documentation(normalize_documentation(content), self.config.max_documentation_chars)
        logger.debug(f"Fetched {len(documentation)} characters of documentation for {library_id}")

        return {
            "libraryId": library_id,
            "documentation": documentation,
            "codeSnippets": count_code_snippets(documentation),
            "topic": topic or "general",
        }

    async def _call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        body = {
            "jsonrpc": "2.0",
            "id": cuid(),
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        }
        logger.debug(f"Calling documentation tool {name} with {arguments}")

        try:
            response = await self._client.post(self.config.url, json=body)
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"Context7 request failed: {e}") from e

        if not response.is_success:
            raise RemoteServiceError(f"Context7 API error: {response.status_code} {response.reason_phrase}")

        envelope = decode_sse_envelope(response.text)

        error_message = envelope_error_message(envelope)
        if error_message:
            raise RemoteServiceError(f"Context7 API error: {error_message}")

        return envelope

    async def aclose(self) -> None:
        await self._client.aclose()
