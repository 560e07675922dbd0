"""
Update notifications for the wellness dashboard.

The broadcaster fans out MoodUpdateEvent objects to any number of
subscribers, either as plain callbacks or as async streams.
"""

import asyncio
from collections import deque
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

from loguru import logger

from .models import MoodUpdateEvent

MoodUpdateCallback = Callable[[MoodUpdateEvent], None]


class UpdateBroadcaster:
    """
    Publishes dashboard updates to subscribers.

    Streaming subscribers are woken through a condition variable and catch
    up from a bounded backlog, so bursts of updates are not dropped unless
    a subscriber falls more than ``backlog`` events behind.
    """

    def __init__(self, backlog: int = 100) -> None:
        self._condition = asyncio.Condition()
        self._events: deque[tuple[int, MoodUpdateEvent]] = deque(maxlen=backlog)
        self._update_counter = 0
        self._callbacks: list[MoodUpdateCallback] = []

    def subscribe(self, callback: MoodUpdateCallback) -> Callable[[], None]:
        """
        Register a callback invoked on every update.

        Returns:
            A function that removes the callback
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def publish(self, event: MoodUpdateEvent) -> None:
        """Deliver an event to callbacks and wake streaming subscribers."""
        async with self._condition:
            self._update_counter += 1
            self._events.append((self._update_counter, event))
            self._condition.notify_all()

        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                logger.exception("Mood update callback {} failed", callback)

    @asynccontextmanager
    async def stream(
        self, user_id: str | None = None
    ) -> AsyncGenerator[AsyncGenerator[MoodUpdateEvent, None], None]:
        """
        Stream updates published after subscription.

        Args:
            user_id: Only yield events for this user; all users if None

        Yields:
            An async generator of MoodUpdateEvent objects
        """

        async def event_generator() -> AsyncGenerator[MoodUpdateEvent, None]:
            async with self._condition:
                last_seen_counter = self._update_counter

            try:
                while True:
                    async with self._condition:
                        await self._condition.wait_for(
                            lambda: self._update_counter > last_seen_counter
                        )
                        pending = [
                            event
                            for seq, event in self._events
                            if seq > last_seen_counter
                            and (user_id is None or event.user_id == user_id)
                        ]
                        last_seen_counter = self._update_counter

                    for event in pending:
                        yield event

            except (asyncio.CancelledError, GeneratorExit):
                # Subscriber went away
                return

        yield event_generator()
