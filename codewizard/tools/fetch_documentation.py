"""Documentation fetch tool."""

from typing import Any

from pydantic import BaseModel, Field
from pydantic.json_schema import SkipJsonSchema

from codewizard.clients.context7 import DocsServiceClient
from codewizard.tools.base import TOOL_PREFIX, ToolDefinition
from codewizard.tools.resolve_library import RESOLVE_LIBRARY_ID

FETCH_DOCUMENTATION = f"{TOOL_PREFIX}fetch-documentation"


class FetchDocumentationInput(BaseModel):
    """Input schema for the documentation fetch tool."""

    context7CompatibleLibraryID: str = Field(  # noqa: N815
        ...,
        min_length=1,
        description="Exact Context7-compatible library ID (e.g., '/mongodb/docs', '/vercel/next.js')",
    )
    tokens: int | SkipJsonSchema[None] = Field(
        default=None,
        description="Maximum number of tokens of documentation to retrieve (default: 10000)",
    )
    topic: str | SkipJsonSchema[None] = Field(
        default=None,
        description="Topic to focus documentation on (e.g., 'hooks', 'routing')",
    )


def create_fetch_documentation_tool(docs_client: DocsServiceClient) -> ToolDefinition:
    async def fetch_documentation_handler(params: FetchDocumentationInput) -> dict[str, Any]:
        # The service budget is fixed; ``tokens`` is accepted but not forwarded.
        return await docs_client.fetch_documentation(params.context7CompatibleLibraryID, topic=params.topic)

    return ToolDefinition(
        name=FETCH_DOCUMENTATION,
        description=(
            "Step 2: Fetches up-to-date documentation for a library given its Context7-compatible ID. "
            f"IMPORTANT: You must use `{RESOLVE_LIBRARY_ID}` first to get the `context7CompatibleLibraryID`."
        ),
        input_schema_class=FetchDocumentationInput,
        handler=fetch_documentation_handler,
    )
