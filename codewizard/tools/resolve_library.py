"""Library ID resolution tool."""

from typing import Any

from pydantic import BaseModel, Field

from codewizard.clients.context7 import DocsServiceClient
from codewizard.tools.base import TOOL_PREFIX, ToolDefinition

RESOLVE_LIBRARY_ID = f"{TOOL_PREFIX}resolve-library-id"


class ResolveLibraryIdInput(BaseModel):
    """Input schema for library ID resolution."""

    libraryName: str = Field(  # noqa: N815
        ...,
        min_length=1,
        description="Library name to search for and retrieve a Context7-compatible library ID.",
        examples=["react", "fastapi"],
    )


def create_resolve_library_tool(docs_client: DocsServiceClient) -> ToolDefinition:
    async def resolve_library_handler(params: ResolveLibraryIdInput) -> Any:
        return await docs_client.resolve_library_id(params.libraryName)

    return ToolDefinition(
        name=RESOLVE_LIBRARY_ID,
        description=(
            "Step 1: Finds a Context7-compatible library ID for a given library name. "
            "Use this to find the ID before fetching docs."
        ),
        input_schema_class=ResolveLibraryIdInput,
        handler=resolve_library_handler,
    )
