"""Bounded-concurrency job pool with periodic checkpoints."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

log = logging.getLogger("brain_teaser.runner")

Job = Callable[[], Awaitable[Any]]


async def run_pool(
    jobs: list[Job],
    concurrency: int,
    checkpoint_every: int = 20,
    on_checkpoint: Callable[[int], None] | None = None,
    delay: float = 0.0,
) -> list[Any]:
    """Run *jobs* on ``concurrency`` workers and return results by input position.

    Workers pull the next unclaimed index until the queue is empty, so
    completion order is arbitrary. ``on_checkpoint(completed)`` fires after
    every ``checkpoint_every`` completions counted across all workers. A job
    that raises does not stop the pool: its exception object is stored as its
    result. ``delay`` is a pause a worker takes between jobs.
    """
    results: list[Any] = [None] * len(jobs)
    next_index = 0
    completed = 0
    last_checkpoint = 0

    async def worker() -> None:
        nonlocal next_index, completed, last_checkpoint
        while next_index < len(jobs):
            i = next_index
            next_index += 1
            try:
                results[i] = await jobs[i]()
            except Exception as e:
                log.warning("Job %d failed: %s", i, e)
                results[i] = e
            completed += 1

            if on_checkpoint and completed - last_checkpoint >= checkpoint_every:
                last_checkpoint = completed
                on_checkpoint(completed)

            if delay > 0 and next_index < len(jobs):
                await asyncio.sleep(delay)

    n_workers = max(1, min(concurrency, len(jobs)))
    await asyncio.gather(*(worker() for _ in range(n_workers)))
    return results
