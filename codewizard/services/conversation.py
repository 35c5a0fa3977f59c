"""Conversation service: wires clients, tools, driver and framer per request."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import aclosing

import httpx
import tiktoken
from cuid2 import cuid_wrapper

from codewizard.clients.context7 import DocsServiceClient, DocsServiceConfig
from codewizard.clients.groq import GroqClient, GroqConfig, load_tokenizer
from codewizard.errors import ConfigurationError
from codewizard.graphs.conversation import ConversationDriver
from codewizard.graphs.state import MAX_ITERATIONS
from codewizard.models.conversation import ChatbotRequest
from codewizard.services.framer import StreamFramer
from codewizard.tools.registry import build_tool_registry
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

MISSING_API_KEY_MESSAGE = "Groq API key is required. Please configure your API key in the settings."


class ConversationService:
    """Turns one chatbot request into a stream of framed events."""

    def __init__(
        self,
        groq_config: GroqConfig | None = None,
        docs_config: DocsServiceConfig | None = None,
        groq_transport: httpx.AsyncBaseTransport | None = None,
        docs_transport: httpx.AsyncBaseTransport | None = None,
        max_iterations: int = MAX_ITERATIONS,
    ):
        """Initialize conversation service.

        Args:
            groq_config: Model endpoint configuration
            docs_config: Documentation service configuration
            groq_transport: Optional transport for the model endpoint (used by tests)
            docs_transport: Optional transport for the documentation service (used by tests)
            max_iterations: Maximum model calls per run
        """
        self.groq_config = groq_config or GroqConfig()
        self.docs_config = docs_config or DocsServiceConfig()
        self.groq_transport = groq_transport
        self.docs_transport = docs_transport
        self.max_iterations = max_iterations
        self._tokenizer: tiktoken.Encoding | None = None

    def validate(self, request: ChatbotRequest) -> None:
        """Reject requests that cannot start a run.

        Raises:
            ConfigurationError: If no API key was supplied
        """
        if not request.api_key:
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)

    async def get_tokenizer(self) -> tiktoken.Encoding | None:
        """Tokenizer shared by every run, loaded off the event loop on first use."""
        if self._tokenizer is None:
            self._tokenizer = await asyncio.to_thread(load_tokenizer, self.groq_config.tokenizer_encoding)
        return self._tokenizer

    async def stream(self, request: ChatbotRequest) -> AsyncIterator[str]:
        """Yield ``data:`` frames for one run.

        Clients are closed when the stream finishes or the consumer stops
        iterating early.
        """
        self.validate(request)

        run_id = cuid()
        tokenizer = await self.get_tokenizer()
        client = GroqClient(request.api_key, self.groq_config, transport=self.groq_transport, tokenizer=tokenizer)
        docs_client = DocsServiceClient(self.docs_config, transport=self.docs_transport)
        framer = StreamFramer()

        try:
            tools = build_tool_registry(request.api_key, docs_client)
            driver = ConversationDriver(client, tools, max_iterations=self.max_iterations)

            async with aclosing(driver.run(request.prior_turns(), request.model, run_id=run_id)) as events:
                async for event in events:
                    yield framer.frame(event)
                    if framer.closed:
                        break
        finally:
            if not framer.closed:
                logger.info(f"[{run_id}] Stream closed before completion")
            framer.close()
            await client.aclose()
            await docs_client.aclose()


conversation_service = ConversationService()


def get_conversation_service() -> ConversationService:
    """FastAPI dependency for the conversation service."""
    return conversation_service
