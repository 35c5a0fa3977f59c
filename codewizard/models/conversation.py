"""Request and response models for the HTTP surface."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from codewizard.models.llm import Turn

DEFAULT_MODEL = "moonshotai/kimi-k2-instruct"


class ChatMessage(BaseModel):
    """A message as sent by the browser client."""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: Any = ""

    def as_turn(self) -> Turn | None:
        """Convert to a Turn, or None for roles the client may not supply."""
        if self.role not in ("user", "assistant"):
            return None
        content = self.content if isinstance(self.content, str) else json.dumps(self.content)
        return Turn(role=self.role, content=content)


class ChatbotRequest(BaseModel):
    """Request model for the chatbot endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(default=None, alias="groqApiKey")
    model: str = Field(default=DEFAULT_MODEL, alias="groqModel")
    messages: list[ChatMessage] = Field(default_factory=list)

    def prior_turns(self) -> list[Turn]:
        """User and assistant turns from the client history, in order."""
        turns = (message.as_turn() for message in self.messages)
        return [turn for turn in turns if turn is not None]


class ErrorResponse(BaseModel):
    """Error body returned before a stream is opened."""

    error: str


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
