"""Collapse concurrent identical coroutine calls into one in-flight task."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, TypeVar

from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SingleFlight:
    """
    Keyed single-flight group for one event loop.

    While a call for ``key`` is running, later calls with the same key await
    the same task and receive its result or exception. Once it settles the
    key is released and the next call starts fresh.
    """

    def __init__(self):
        self._inflight: Dict[Hashable, asyncio.Task] = {}

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._release(k, _t))
        else:
            logger.debug(f"Joining in-flight call: {key!r}")
        # shield: one caller being cancelled must not cancel the shared call
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def in_flight(self, key: Any) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)
