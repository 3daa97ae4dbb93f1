"""
Detached background tasks.

run_in_background() schedules a coroutine on the running event loop and
returns immediately. The caller never awaits the result: failures are logged
from a done-callback and never propagate back into the caller's control flow.

The module keeps a strong reference to every pending task (the event loop
only holds weak references), so a dispatched task is not garbage-collected
mid-flight. drain_background_tasks() lets an entry point give pending work a
bounded grace period before the process exits; skipping it is allowed and
simply drops whatever has not finished.

The registry is per process, not per session: drain_background_tasks() waits
on every pending task of the running loop, whichever session scheduled it.
It suits the one-session-per-process CLI; a host running several sessions in
one loop should await each SessionResult.record_task instead.
"""

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)

_pending_tasks: set[asyncio.Task] = set()


def _on_task_done(task: asyncio.Task) -> None:
    _pending_tasks.discard(task)
    if task.cancelled():
        logger.warning("Background task '%s' was cancelled before completing", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Background task '%s' failed: %s",
            task.get_name(), exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def run_in_background(coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
    """
    Start `coro` as a detached task on the running loop.

    Must be called from inside a running event loop.

    Returns:
        The scheduled task. Callers may ignore it.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _pending_tasks.add(task)
    task.add_done_callback(_on_task_done)
    return task


def pending_background_tasks() -> int:
    return len(_pending_tasks)


async def drain_background_tasks(timeout: float = 5.0) -> int:
    """
    Wait up to `timeout` seconds for pending background tasks.

    Task failures are already handled by the done-callback, so this never
    raises for them.

    Returns:
        Number of tasks still unfinished when the timeout expired.
    """
    loop = asyncio.get_running_loop()
    tasks = {task for task in _pending_tasks if task.get_loop() is loop}
    if not tasks:
        return 0

    _, still_pending = await asyncio.wait(tasks, timeout=timeout)
    if still_pending:
        logger.warning(
            "%d background task(s) still running after %.1fs; they will be dropped",
            len(still_pending), timeout,
        )
    return len(still_pending)
