"""Tools registry for the documentation tools."""

from typing import Any

from codewizard.clients.context7 import DocsServiceClient
from codewizard.models.llm import LLMTool
from codewizard.tools.base import ToolCallable, ToolDefinition
from codewizard.tools.fetch_documentation import create_fetch_documentation_tool
from codewizard.tools.resolve_library import create_resolve_library_tool
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry for managing AI assistant tools."""

    def __init__(self, docs_client: DocsServiceClient):
        """Initialize tools registry with the documentation client."""
        self.docs_client = docs_client
        self._tools: dict[str, ToolDefinition] = {}
        self._register_default_tools()

    def _register_default_tools(self) -> None:
        """Register the documentation lookup tools."""
        tools = [
            create_resolve_library_tool(self.docs_client),
            create_fetch_documentation_tool(self.docs_client),
        ]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        self._tools[tool.name] = tool

    def get_llm_tools(self) -> dict[str, LLMTool]:
        """Get LLM tools with both schemas and callables."""

        def create_tool_callable(tool: ToolDefinition) -> ToolCallable:
            async def tool_callable(params: dict[str, Any]) -> Any:
                parsed_params = tool.parse_input(params)
                return await tool.handler(parsed_params)

            return tool_callable

        return {
            name: LLMTool(
                name=tool.name,
                description=tool.description,
                parameters=tool.get_json_schema(),
                callable=create_tool_callable(tool),
            )
            for name, tool in self._tools.items()
        }


def build_tool_registry(credential: str | None, docs_client: DocsServiceClient) -> dict[str, LLMTool]:
    """Tools offered to the model for one run.

    Never raises: without a credential, or if construction fails, the run
    proceeds as plain chat with no tools.
    """
    if not credential:
        return {}

    try:
        return ToolsRegistry(docs_client).get_llm_tools()
    except Exception as e:
        logger.warning(f"Tool registry unavailable, continuing without tools: {e}", exc_info=True)
        return {}
