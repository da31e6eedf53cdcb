"""Fan-out of handshake events to interested parties."""
from __future__ import annotations

import asyncio
from asyncio import Queue
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, List, Optional

import structlog

from .state import AuthEvent

AuthListener = Callable[[AuthEvent], None]

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class EventSubscription:
    """Asynchronous iterator over handshake events."""

    _stream: "AuthEventStream"
    _queue: "Queue[Optional[AuthEvent]]"
    _closed: bool = False

    def __aiter__(self) -> "EventSubscription":
        return self

    async def __anext__(self) -> AuthEvent:
        if self._closed:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            self._closed = True
            raise StopAsyncIteration
        return event

    def get_nowait(self) -> AuthEvent | None:
        """Return the next buffered event, or ``None`` when nothing is waiting."""
        try:
            event = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if event is None:
            self._closed = True
        return event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream._remove(self._queue)


class AuthEventStream:
    """Publishes :class:`AuthEvent` records to subscribers and listeners."""

    def __init__(self, *, max_queue: int = 64, backlog: int = 32) -> None:
        self._subscribers: Dict[int, "Queue[Optional[AuthEvent]]"] = {}
        self._listeners: List[AuthListener] = []
        self._max_queue = max_queue
        self._backlog: Deque[AuthEvent] = deque(maxlen=backlog)

    def publish(self, event: AuthEvent) -> None:
        self._backlog.append(event)
        for queue in list(self._subscribers.values()):
            self._enqueue(queue, event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("auth.events.listener_failed", kind=event.kind.value)

    def subscribe(self, *, replay: bool = False) -> EventSubscription:
        queue: "Queue[Optional[AuthEvent]]" = Queue(maxsize=self._max_queue)
        if replay:
            for item in list(self._backlog)[-self._max_queue :]:
                queue.put_nowait(item)
        self._subscribers[id(queue)] = queue
        return EventSubscription(self, queue)

    def add_listener(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AuthListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _remove(self, queue: "Queue[Optional[AuthEvent]]") -> None:
        self._subscribers.pop(id(queue), None)
        self._enqueue(queue, None)

    def _enqueue(self, queue: "Queue[Optional[AuthEvent]]", event: Optional[AuthEvent]) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            # drop the oldest record to make room
            queue.get_nowait()
            queue.put_nowait(event)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def backlog(self) -> Iterable[AuthEvent]:
        return tuple(self._backlog)


__all__ = ["AuthEventStream", "AuthListener", "EventSubscription"]
