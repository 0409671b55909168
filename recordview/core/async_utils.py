from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

import anyio

T = TypeVar("T")


def run_async(coro: Coroutine[object, object, T], *, timeout: float | None = None) -> T:
    """
    Run an async coroutine from sync code (CLI commands, scripts).

    - Uses anyio.from_thread.run when called from an AnyIO worker thread.
    - Falls back to anyio.run when no event loop is running.
    - Raises if called from an async context in the same thread (use await instead).
    """

    async def _runner() -> T:
        if timeout is not None:
            with anyio.fail_after(timeout):
                return await coro
        return await coro

    try:
        return anyio.from_thread.run(_runner)
    except RuntimeError:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return anyio.run(_runner)
        coro.close()
        raise RuntimeError("run_async called from async context; use await instead")


class RequestSequencer:
    """
    Monotonic request tokens per logical operation.

    Only the most recent request for an operation may update state:
    issue a token with ``next(op)`` before awaiting, then check
    ``is_current(op, token)`` once the response arrives.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._epoch = 0

    def next(self, operation: str) -> int:
        value = self._counters.get(operation, 0) + 1
        self._counters[operation] = value
        return value

    def current(self, operation: str) -> int:
        return self._counters.get(operation, 0)

    def is_current(self, operation: str, token: int) -> bool:
        return self._counters.get(operation, 0) == token

    def invalidate(self, operation: str | None = None) -> None:
        """Make every outstanding token stale (all operations when none given)."""
        if operation is not None:
            self.next(operation)
            return
        for op in list(self._counters):
            self._counters[op] += 1
        self._epoch += 1

    @property
    def epoch(self) -> int:
        """Bumped by a full invalidate(); lets callers detect a close()."""
        return self._epoch
