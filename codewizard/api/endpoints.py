"""API endpoints for the chat proxy."""

from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from codewizard import __version__
from codewizard.errors import ConfigurationError
from codewizard.models.conversation import ChatbotRequest, ErrorResponse, HealthResponse
from codewizard.services.conversation import ConversationService, get_conversation_service
from codewizard.services.rate_limit import CredentialRateLimiter, rate_limiter
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

RATE_LIMITED_MESSAGE = "Too many requests for this API key. Please wait a moment and try again."


def get_rate_limiter() -> CredentialRateLimiter:
    """FastAPI dependency for the per-credential rate limiter."""
    return rate_limiter


@router.post(
    "/api/chatbot",
    tags=["Chat"],
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
async def chatbot(
    request: Request,
    body: ChatbotRequest,
    service: ConversationService = Depends(get_conversation_service),
    limiter: CredentialRateLimiter = Depends(get_rate_limiter),
):
    """Run one user submission and stream the result as server-sent events.

    Frames carry text deltas, tool-invocation notices and tool results; the
    stream ends with ``data: [DONE]`` or an error frame.
    """
    try:
        service.validate(body)
    except ConfigurationError as e:
        logger.warning(f"Rejected chatbot request: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    if not limiter.allow(body.api_key):
        return JSONResponse(status_code=429, content={"error": RATE_LIMITED_MESSAGE})

    logger.info(f"Starting chat stream with model {body.model} and {len(body.messages)} messages")

    async def event_stream() -> AsyncIterator[str]:
        async with aclosing(service.stream(body)) as frames:
            async for frame in frames:
                if await request.is_disconnected():
                    logger.info("Client disconnected, abandoning run")
                    break
                yield frame

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
