"""Waiting for a published version to show up on the index."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pyworkspaces.errors import AvailabilityTimeoutError
from pyworkspaces.log import get_logger

if TYPE_CHECKING:
    from pyworkspaces.registry import RegistryClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    """Bounded exponential backoff.

    Attributes:
        initial_delay: Wait after the first unsuccessful poll, in seconds.
        max_delay: Upper bound for a single wait.
        max_attempts: Total number of polls.
        factor: Growth of the wait between polls.
    """

    initial_delay: float = 1.0
    max_delay: float = 30.0
    max_attempts: int = 12
    factor: float = 2.0

    def delays(self) -> Iterator[float]:
        """Waits between consecutive polls (``max_attempts - 1`` values)."""
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield min(delay, self.max_delay)
            delay *= self.factor


async def wait_until_available(
    registry: RegistryClient,
    name: str,
    version: str,
    policy: BackoffPolicy,
    abort: asyncio.Event | None = None,
) -> bool:
    """Poll the registry until ``name==version`` is visible.

    Args:
        registry: Registry capability.
        name: Package name.
        version: Version just published.
        policy: Backoff settings.
        abort: When set, polling stops before the next attempt.

    Returns:
        True once available, False if aborted.

    Raises:
        AvailabilityTimeoutError: If every attempt came back absent.
    """
    delays = policy.delays()
    for attempt in range(1, policy.max_attempts + 1):
        if abort is not None and abort.is_set():
            return False
        if await registry.query(name, version):
            logger.info("package_available", package=name, version=version, attempts=attempt)
            return True

        delay = next(delays, None)
        if delay is None:
            break
        logger.debug(
            "availability_poll", package=name, version=version, attempt=attempt, delay=delay
        )
        if abort is None:
            await asyncio.sleep(delay)
            continue
        try:
            await asyncio.wait_for(abort.wait(), timeout=delay)
        except asyncio.TimeoutError:
            continue
        return False

    logger.error(
        "availability_timeout", package=name, version=version, attempts=policy.max_attempts
    )
    raise AvailabilityTimeoutError(name, version, policy.max_attempts)
