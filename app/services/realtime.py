"""In-process live queries pushed to WebSocket subscribers.

A subscription is a query plus the topics it depends on. Services call
``live_queries.publish(...)`` after a transaction commits; every subscription on one
of those topics re-runs its query and, when the result differs from the last one it
delivered, yields the new result. Each delivered value is the complete result set,
never a delta.
"""
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import async_session_maker

logger = logging.getLogger(__name__)

SnapshotQuery = Callable[[AsyncSession], Awaitable[Any]]


def posts_topic() -> str:
    return "posts"


def post_topic(post_id: str) -> str:
    return f"post:{post_id}"


def comments_topic(post_id: str) -> str:
    return f"comments:{post_id}"


def notifications_topic(uid: str) -> str:
    return f"notifications:{uid}"


def friendships_topic(uid: str) -> str:
    return f"friendships:{uid}"


def friend_requests_topic(uid: str) -> str:
    return f"friend_requests:{uid}"


class Subscription:
    """Async iterator of snapshots. ``cancel()`` may be called any number of times."""

    def __init__(
        self,
        hub: "LiveQueryHub",
        topics: Iterable[str],
        query: SnapshotQuery,
        *,
        refresh_every: float | None = None,
    ):
        self._hub = hub
        self.topics = frozenset(topics)
        self._query = query
        self._refresh_every = refresh_every
        self._changed = asyncio.Event()
        self._cancelled = False
        self._last: Any = None
        self._delivered = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def notify(self) -> None:
        self._changed.set()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._hub._remove(self)
        self._changed.set()

    async def _run_query(self) -> Any:
        async with async_session_maker() as session:
            return await self._query(session)

    async def _wait_for_change(self) -> None:
        if self._refresh_every is None:
            await self._changed.wait()
            return
        try:
            await asyncio.wait_for(self._changed.wait(), timeout=self._refresh_every)
        except asyncio.TimeoutError:
            # Clock tick: time-windowed queries move even without writes
            pass

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        while not self._cancelled:
            self._changed.clear()
            snapshot = await self._run_query()
            if self._cancelled:
                return
            if not self._delivered or snapshot != self._last:
                self._last = snapshot
                self._delivered = True
                yield snapshot
            await self._wait_for_change()


class LiveQueryHub:
    def __init__(self) -> None:
        self._by_topic: dict[str, set[Subscription]] = {}

    def subscribe(
        self,
        topics: Iterable[str],
        query: SnapshotQuery,
        *,
        refresh_every: float | None = None,
    ) -> Subscription:
        subscription = Subscription(self, topics, query, refresh_every=refresh_every)
        for topic in subscription.topics:
            self._by_topic.setdefault(topic, set()).add(subscription)
        logger.debug("Subscribed to %s", sorted(subscription.topics))
        return subscription

    def publish(self, *topics: str) -> None:
        for topic in topics:
            for subscription in list(self._by_topic.get(topic, ())):
                subscription.notify()

    def subscriber_count(self, topic: str) -> int:
        return len(self._by_topic.get(topic, ()))

    def _remove(self, subscription: Subscription) -> None:
        for topic in subscription.topics:
            group = self._by_topic.get(topic)
            if group is None:
                continue
            group.discard(subscription)
            if not group:
                self._by_topic.pop(topic, None)
        logger.debug("Unsubscribed from %s", sorted(subscription.topics))


live_queries = LiveQueryHub()
