"""
Detached background tasks.

Work that must not delay or fail the request that triggered it (chat
notifications) is scheduled with `spawn_detached`. The task outlives the
request; a strong reference is held until it finishes and any exception is
logged instead of disappearing with the task object.
"""

import asyncio
import logging
from typing import Coroutine, Set

logger = logging.getLogger(__name__)

_background_tasks: Set[asyncio.Task] = set()


def _on_task_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.warning(f"Background task {task.get_name()} was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            f"Background task {task.get_name()} failed: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__)
        )


def spawn_detached(coro: Coroutine, name: str = "background") -> asyncio.Task:
    """Schedule `coro` on the running loop without awaiting it."""
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_on_task_done)
    return task


def pending_tasks() -> Set[asyncio.Task]:
    return set(_background_tasks)


async def drain(timeout: float = 5.0) -> None:
    """Wait for in-flight detached tasks, used on shutdown."""
    loop = asyncio.get_running_loop()
    tasks = {t for t in pending_tasks() if t.get_loop() is loop and not t.done()}
    if not tasks:
        return
    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        logger.warning(f"Cancelled {len(pending)} background task(s) on shutdown")
