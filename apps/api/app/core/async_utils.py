from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

import anyio

T = TypeVar("T")


def run_async(coro: Coroutine[object, object, T], *, timeout: float | None = None) -> T:
    """
    Run a reminder coroutine from sync code (sync endpoints, CLI, cron hooks).

    - Inside a FastAPI sync endpoint, runs on the main loop via anyio.from_thread.
    - Falls back to anyio.run when there is no AnyIO worker thread.
    - Raises if called from a running loop in the same thread (await instead).
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
