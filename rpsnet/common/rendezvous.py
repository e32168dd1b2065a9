from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Tuple, TypeVar


A = TypeVar("A")
B = TypeVar("B")


async def rendezvous(first: Awaitable[A], second: Awaitable[B]) -> Tuple[A, B]:
    """
    Runs both awaitables concurrently on the current event loop and returns
    both results once both have finished.

    Fail-fast: the first exception cancels the sibling and is re-raised.
    Cancelling the caller cancels both.
    """
    t1 = asyncio.ensure_future(first)
    t2 = asyncio.ensure_future(second)
    tasks = (t1, t2)
    try:
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for t in tasks:
                if t in done and not t.cancelled() and t.exception() is not None:
                    raise t.exception()
        return t1.result(), t2.result()
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()
        for t in tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await t
