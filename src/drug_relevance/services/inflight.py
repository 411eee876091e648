"""
In-Flight Coordinator

Guarantees at most one concurrent producer per key. The first caller for a
key becomes the owner and does the work; callers arriving while it runs
join the owner's ticket and receive the same result.

Joiners wait on a shielded future with a bounded timeout, so a slow owner
degrades joiners to the default instead of hanging them, and a cancelled
joiner never cancels the owner's work.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class InFlightTicket:
    """Handle on one in-progress computation."""
    key: str
    future: "asyncio.Future[Any]"
    started_at: float = field(default_factory=time.monotonic)

    @property
    def done(self) -> bool:
        return self.future.done()


class InFlightCoordinator:
    """
    Per-key single-flight table.

    Usage:
        coordinator = InFlightCoordinator(name="generation")

        result = await coordinator.run(
            key,
            lambda: generator.generate(condition),
            default=None,
            timeout=30,
        )
    """

    def __init__(self, name: str = "inflight"):
        self.name = name
        self._tickets: Dict[str, InFlightTicket] = {}
        self._lock = Lock()

    def acquire(self, key: str) -> Tuple[InFlightTicket, bool]:
        """
        Get or create the ticket for key.

        Must be called from a running event loop.

        Returns:
            (ticket, already_in_flight). When already_in_flight is False the
            caller owns the ticket and must resolve it.
        """
        with self._lock:
            ticket = self._tickets.get(key)
            if ticket is not None:
                return ticket, True

            ticket = InFlightTicket(key=key, future=asyncio.get_running_loop().create_future())
            self._tickets[key] = ticket
            return ticket, False

    def resolve(self, key: str, result: Any, ticket: Optional[InFlightTicket] = None):
        """
        Publish result to every waiter on the key's ticket and retire it.

        Resolving an already-resolved or retired ticket is a no-op. Passing
        the owner's ticket protects a newer ticket for the same key (after
        clear()) from being retired by a stale owner.
        """
        with self._lock:
            current = self._tickets.get(key)
            if ticket is None:
                ticket = current
            if ticket is not None and current is ticket:
                del self._tickets[key]

        if ticket is not None and not ticket.future.done():
            ticket.future.set_result(result)

    async def wait(self, ticket: InFlightTicket, timeout: float, default: Any = None) -> Any:
        """
        Wait for the ticket's result, at most timeout seconds.

        Returns:
            The owner's result, or default when the wait timed out
        """
        try:
            return await asyncio.wait_for(asyncio.shield(ticket.future), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"[InFlight:{self.name}] Wait for '{ticket.key}' timed out after {timeout}s"
            )
            return default

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        default: Any = None,
        timeout: float = 30.0,
    ) -> Any:
        """
        Run factory once per key across concurrent callers.

        The owner's ticket is always resolved, with default if factory
        raised or was cancelled; the exception still propagates to the owner.
        """
        ticket, already_in_flight = self.acquire(key)
        if already_in_flight:
            logger.debug(f"[InFlight:{self.name}] Joining in-flight request: {key}")
            return await self.wait(ticket, timeout, default)

        result = default
        try:
            result = await factory()
            return result
        finally:
            self.resolve(key, result, ticket=ticket)

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._tickets

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._tickets)

    def clear(self) -> int:
        """Forget all tickets. Running owners still resolve their own waiters."""
        with self._lock:
            count = len(self._tickets)
            self._tickets.clear()
        return count
