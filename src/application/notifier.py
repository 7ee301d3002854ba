"""Change notification for live display clients.

Publishing only needs something with ``notify_changed()``. The broadcaster
used by the HTTP app fans a bare ``refresh`` signal out to every connected
event stream; clients re-fetch the latest snapshot themselves.
"""

import asyncio
from typing import Final, Protocol

from ..logging_config import get_logger
from ..metrics import record_subscriber_change

logger: Final = get_logger(__name__)

REFRESH_MESSAGE: Final = "refresh"


class ChangeNotifier(Protocol):
    def notify_changed(self) -> None: ...


class NullNotifier:
    """Notifier for contexts without live clients (scripts, tests)."""

    def notify_changed(self) -> None:
        pass


class Subscription:
    """One connected client: a bounded queue bound to its event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, max_pending: int):
        self.loop = loop
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)

    def _offer(self, message: str) -> None:
        # A client that is this far behind will refresh on the next signal anyway
        if self.queue.full():
            logger.debug("Dropping refresh for slow subscriber")
            return
        self.queue.put_nowait(message)

    def deliver(self, message: str) -> bool:
        """Schedule delivery from any thread. False if the loop is gone."""
        try:
            self.loop.call_soon_threadsafe(self._offer, message)
        except RuntimeError:
            return False
        return True


class ChangeBroadcaster:
    """Fan-out of refresh signals to all live subscribers.

    ``notify_changed`` may run on a thread other than the one serving a
    subscriber (scripts, tests, a second event loop), so delivery is handed to
    each subscriber's loop.
    """

    def __init__(self, max_pending: int = 16):
        self.max_pending = max_pending
        self._subscribers: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a subscriber on the running event loop."""
        subscription = Subscription(asyncio.get_running_loop(), self.max_pending)
        self._subscribers.add(subscription)
        record_subscriber_change(1)
        logger.debug("Live subscriber connected", subscribers=self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            record_subscriber_change(-1)
            logger.debug(
                "Live subscriber disconnected", subscribers=self.subscriber_count
            )

    def notify_changed(self) -> None:
        stale = [
            subscription
            for subscription in list(self._subscribers)
            if not subscription.deliver(REFRESH_MESSAGE)
        ]
        for subscription in stale:
            self.unsubscribe(subscription)
        logger.info(
            "Change notification sent",
            subscribers=self.subscriber_count,
            dropped=len(stale),
        )
