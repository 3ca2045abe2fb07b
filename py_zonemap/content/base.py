"""
Content generator contract and retry policy.

The orchestrator only sees typed results or None; how a generator talks to
its backend and repairs its output stays behind this interface.
"""

from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, TypeVar

import structlog

from .models import FillerProposal, SpecialProposal, ZoneTemplate

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 10


class ContentGenerator(Protocol):
    """Turns world text into zone proposals and templates."""

    async def generate_lore(self, description: str) -> str:
        """Expand a short world description into lore text."""

    async def generate_filler_templates(self, lore: str) -> Optional[List[FillerProposal]]:
        """Generic, map-filling zone types and their cell shares."""

    async def generate_special_templates(self, lore: str) -> Optional[List[SpecialProposal]]:
        """Rare, named zone ideas."""

    async def generate_filler_detail(self, lore: str, zone_type: str) -> Optional[ZoneTemplate]:
        """Full attribute record for a filler type."""

    async def generate_special_detail(self, lore: str, filler_type_names: Sequence[str],
                                      zone_type: str, name: str,
                                      short_lore: str) -> Optional[ZoneTemplate]:
        """Full attribute record for a special zone, including where_to_place."""


async def with_retries(operation: Callable[[], Awaitable[T]],
                       max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                       description: str = "content generation") -> Optional[T]:
    """
    Run an async operation until it succeeds or the attempt budget is spent.

    Args:
        operation: Zero-argument coroutine factory
        max_attempts: Attempts before giving up
        description: Label used in log records

    Returns:
        The operation's result, or None after ``max_attempts`` failures
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            logger.warning("Content generation attempt failed",
                           operation=description, attempt=attempt,
                           max_attempts=max_attempts, error=str(e))

    logger.error("Content generation gave up", operation=description,
                 attempts=max_attempts)
    return None
