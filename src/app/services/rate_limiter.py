from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check"""

    allowed: bool
    remaining: int
    retry_after: int = 0  # seconds until the window resets, when denied


class RateLimiter(ABC):
    """
    Fixed-window attempt counter keyed by an arbitrary string.

    Implementations must be safe under concurrent calls sharing a key.
    Callers namespace keys by operation, e.g. "start:user@example.com".
    """

    @abstractmethod
    async def check(self, key: str, max_attempts: int, window_seconds: int) -> RateLimitResult:
        """Count one attempt against key and report whether it is allowed"""
        pass
