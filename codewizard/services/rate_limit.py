"""Per-credential request limiting for the chatbot endpoint."""

import hashlib
import os

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from codewizard.utils.logging import get_logger

logger = get_logger(__name__)


class CredentialRateLimiter:
    """Moving-window limiter keyed by a fingerprint of the caller's API key."""

    def __init__(self, requests_per_minute: int | None = None):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Allowed runs per credential per minute
                (defaults to CHATBOT_REQUESTS_PER_MINUTE, then 30)
        """
        if requests_per_minute is None:
            requests_per_minute = int(os.getenv("CHATBOT_REQUESTS_PER_MINUTE", "30"))

        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.request_limit = parse(f"{requests_per_minute}/minute")

    def allow(self, credential: str) -> bool:
        """Record one request for the credential; False if over the limit."""
        allowed = self.limiter.hit(self.request_limit, "chatbot", _fingerprint(credential))
        if not allowed:
            logger.warning("Request rate limit exceeded for credential")
        return allowed


def _fingerprint(credential: str) -> str:
    return hashlib.sha256(credential.encode()).hexdigest()[:16]


rate_limiter = CredentialRateLimiter()
