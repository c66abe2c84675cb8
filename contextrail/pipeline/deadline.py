"""Per-stage deadlines.

A deadline only bounds how long the engine waits. When it passes, the
stage's task is asked to cancel and abandoned; work the stage started
outside the event loop (threads, outstanding network calls) may still
run to completion, and its result is discarded.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from contextrail.pipeline.exceptions import StageTimeoutError
from contextrail.pipeline.stage import StageDescriptor

T = TypeVar("T")


def _discard_outcome(task: asyncio.Future) -> None:
    # Mark the abandoned task's exception as retrieved
    if not task.cancelled():
        task.exception()


async def run_with_deadline(descriptor: StageDescriptor, awaitable: Awaitable[T]) -> T:
    """Await a stage's work, giving up after descriptor.timeout_ms.

    Raises:
        StageTimeoutError: If the deadline passes first
    """
    task = asyncio.ensure_future(awaitable)
    if descriptor.timeout_seconds is None:
        return await task

    try:
        done, _ = await asyncio.wait({task}, timeout=descriptor.timeout_seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_outcome)
    raise StageTimeoutError(descriptor.name, descriptor.timeout_ms or 0)
