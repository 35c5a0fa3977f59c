"""Tests for the Context7 documentation client."""

import json

import httpx
import pytest
from fakes import FakeDocsService, rpc_result, sse_body

from codewizard.clients.context7 import (
    MAX_DOCUMENTATION_CHARS,
    TRUNCATION_MARKER,
    DocsServiceClient,
    DocsServiceConfig,
    count_code_snippets,
    normalize_documentation,
    truncate_documentation,
)
from codewizard.errors import EnvelopeDecodeError, RemoteServiceError

DOCS_URL = "https://docs.test/mcp"


def make_client(service: FakeDocsService) -> DocsServiceClient:
    return DocsServiceClient(DocsServiceConfig(url=DOCS_URL), transport=service.transport)


class TestNormalization:
    """Tests for documentation normalization helpers."""

    def test_string_passes_through(self):
        assert normalize_documentation("plain docs") == "plain docs"

    def test_fragments_joined_with_newlines(self):
        content = [{"type": "text", "text": "first"}, {"content": "second"}, {"type": "image"}]
        assert normalize_documentation(content) == "first\nsecond\n"

    def test_non_object_fragments_contribute_nothing(self):
        assert normalize_documentation(["bare", {"text": "kept"}, 7]) == "\nkept\n"

    def test_object_serialized(self):
        assert normalize_documentation({"a": 1}) == '{"a": 1}'

    def test_missing_content(self):
        assert normalize_documentation(None) == ""

    def test_truncation_over_limit(self):
        text = "x" * (MAX_DOCUMENTATION_CHARS + 1)
        truncated = truncate_documentation(text)
        assert truncated == "x" * MAX_DOCUMENTATION_CHARS + TRUNCATION_MARKER

    def test_no_truncation_at_limit(self):
        text = "y" * MAX_DOCUMENTATION_CHARS
        assert truncate_documentation(text) is text

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("", 0),
            ("no fences", 0),
            ("```", 0),
            ("```py\nprint()\n```", 1),
            ("```a``` and ```b```", 3),
        ],
    )
    def test_code_snippet_count(self, text, expected):
        assert count_code_snippets(text) == expected


class TestResolveLibraryId:
    """Tests for library ID resolution."""

    @pytest.mark.asyncio
    async def test_returns_result_content_verbatim(self):
        content = [{"type": "text", "text": "- Title: React\n- Context7-compatible library ID: /reactjs/react.dev"}]
        service = FakeDocsService({"resolve-library-id": content})
        client = make_client(service)

        result = await client.resolve_library_id("react")

        assert result == content
        await client.aclose()

    @pytest.mark.asyncio
    async def test_sends_jsonrpc_tools_call(self):
        service = FakeDocsService({"resolve-library-id": []})
        client = make_client(service)

        await client.resolve_library_id("react")

        body = service.requests[0]
        assert body["jsonrpc"] == "2.0"
        assert body["method"] == "tools/call"
        assert body["id"]
        assert body["params"] == {"name": "resolve-library-id", "arguments": {"libraryName": "react"}}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_accept_header_includes_event_stream(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text=sse_body({"result": {"content": []}}))

        client = DocsServiceClient(DocsServiceConfig(url=DOCS_URL), transport=httpx.MockTransport(handler))
        await client.resolve_library_id("react")

        assert seen["accept"] == "application/json, text/event-stream"
        assert seen["content-type"] == "application/json"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        service = FakeDocsService({"resolve-library-id": httpx.Response(503)})
        client = make_client(service)

        with pytest.raises(RemoteServiceError, match="Context7 API error: 503 Service Unavailable"):
            await client.resolve_library_id("react")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_envelope_error_raises(self):
        error = httpx.Response(200, text=sse_body({"jsonrpc": "2.0", "id": 1, "error": {"message": "bad params"}}))
        service = FakeDocsService({"resolve-library-id": error})
        client = make_client(service)

        with pytest.raises(RemoteServiceError, match="bad params"):
            await client.resolve_library_id("react")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_data_line_raises(self):
        service = FakeDocsService({"resolve-library-id": httpx.Response(200, text="event: message\n\n")})
        client = make_client(service)

        with pytest.raises(EnvelopeDecodeError):
            await client.resolve_library_id("react")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = DocsServiceClient(DocsServiceConfig(url=DOCS_URL), transport=httpx.MockTransport(handler))

        with pytest.raises(RemoteServiceError, match="connection refused"):
            await client.resolve_library_id("react")
        await client.aclose()


class TestFetchDocumentation:
    """Tests for documentation fetch."""

    @pytest.mark.asyncio
    async def test_requests_token_budget_and_topic(self):
        service = FakeDocsService({"get-library-docs": "docs"})
        client = make_client(service)

        await client.fetch_documentation("/reactjs/react.dev", topic="hooks")

        arguments = service.requests[0]["params"]["arguments"]
        assert arguments == {"context7CompatibleLibraryID": "/reactjs/react.dev", "topic": "hooks", "tokens": 10000}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_topic_omitted_when_absent(self):
        service = FakeDocsService({"get-library-docs": "docs"})
        client = make_client(service)

        result = await client.fetch_documentation("/vercel/next.js")

        assert "topic" not in service.requests[0]["params"]["arguments"]
        assert result["topic"] == "general"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_result_shape(self):
        docs = "Intro\n```js\nuseState()\n```\nMore\n```js\nuseEffect()\n```"
        service = FakeDocsService({"get-library-docs": [{"type": "text", "text": docs}]})
        client = make_client(service)

        result = await client.fetch_documentation("/reactjs/react.dev", topic="hooks")

        assert result == {
            "libraryId": "/reactjs/react.dev",
            "documentation": docs,
            "codeSnippets": 3,
            "topic": "hooks",
        }
        await client.aclose()

    @pytest.mark.asyncio
    async def test_long_documentation_truncated(self):
        service = FakeDocsService({"get-library-docs": "z" * 25000})
        client = make_client(service)

        result = await client.fetch_documentation("/prisma/docs")

        assert len(result["documentation"]) == MAX_DOCUMENTATION_CHARS + len(TRUNCATION_MARKER)
        assert result["documentation"].endswith(TRUNCATION_MARKER)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unescaped_line_separators_in_documentation(self):
        envelope = rpc_result([{"type": "text", "text": "a\u2028b\x85c"}])
        body = f"event: message\ndata: {json.dumps(envelope, ensure_ascii=False)}\n\n"
        service = FakeDocsService(
            {"get-library-docs": httpx.Response(200, text=body, headers={"content-type": "text/event-stream"})}
        )
        client = make_client(service)

        result = await client.fetch_documentation("/x/y")

        assert result["documentation"] == "a\u2028b\x85c"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        service = FakeDocsService({"get-library-docs": httpx.Response(500)})
        client = make_client(service)

        with pytest.raises(RemoteServiceError, match="500"):
            await client.fetch_documentation("/prisma/docs")
        await client.aclose()
