"""Deferred actions gated behind a successful handshake."""
from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, List, Union

import structlog

PostAuthAction = Callable[[], Union[None, Awaitable[Any]]]

logger = structlog.get_logger(__name__)


class PostAuthQueue:
    """First-in-first-out collection of zero-argument actions.

    ``drain`` runs every queued action once, in the order it was appended, and
    empties the queue. Actions appended while a drain is running wait for the
    next drain.
    """

    def __init__(self) -> None:
        self._actions: List[PostAuthAction] = []

    def append(self, action: PostAuthAction) -> None:
        if not callable(action):
            raise TypeError("Post-auth action must be callable")
        self._actions.append(action)

    def clear(self) -> None:
        self._actions.clear()

    def __len__(self) -> int:
        return len(self._actions)

    def __bool__(self) -> bool:
        return bool(self._actions)

    async def drain(self) -> int:
        """Run and remove every queued action; return how many ran."""
        pending, self._actions = self._actions, []
        for index, action in enumerate(pending):
            try:
                result = action()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("auth.post_auth.action_failed", index=index)
        logger.debug("auth.post_auth.drained", count=len(pending))
        return len(pending)


__all__ = ["PostAuthAction", "PostAuthQueue"]
