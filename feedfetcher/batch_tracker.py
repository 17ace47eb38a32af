"""Keeping track of several fetch batches running in the background."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Coroutine, Iterable, Optional

from .batch import Batch, BatchStatusUpdate, Listener, fetch_batch
from .database import Database
from .strategy_list import StrategyList

logger = logging.getLogger(__name__)


class BroadcastListener(Listener):
    """Hands every update to each subscriber queue that is still alive."""

    def __init__(self) -> None:
        self._subscribers: weakref.WeakSet[asyncio.Queue[BatchStatusUpdate]] = weakref.WeakSet()

    def subscribe(self) -> asyncio.Queue[BatchStatusUpdate]:
        """A queue receiving the updates sent from now on."""
        queue: asyncio.Queue[BatchStatusUpdate] = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    async def fetch_finished(self, update: BatchStatusUpdate) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(update)


class BatchNotFoundError(LookupError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Could not find batch at index {index}")
        self.index = index


class NoJoinHandleError(RuntimeError):
    def __init__(self) -> None:
        super().__init__(
            "There's no task to await, presumably because it is already being awaited somewhere else"
        )


async def _tracked(work: Coroutine[None, None, None], identifier: object) -> None:
    logger.info("tracked batch %s started", identifier)
    await work
    logger.info("tracked batch %s finished", identifier)


@dataclass
class TrackedBatch:
    """A batch, its progress broadcaster and the task running it."""

    status: Batch
    listener: BroadcastListener
    task: Optional[asyncio.Task[None]]

    @classmethod
    def start(
        cls,
        feeds: Iterable[int],
        strategies: StrategyList,
        db: Database,
        identifier: object,
    ) -> "TrackedBatch":
        """Start fetching the feeds in a background task named after ``identifier``."""
        listener = BroadcastListener()
        batch, work = fetch_batch(feeds, listener, strategies, db)
        task = asyncio.create_task(_tracked(work, identifier), name=f"tracked batch {identifier}")
        return cls(status=batch, listener=listener, task=task)


class BatchTracker:
    """Batches started so far, addressed by the index they were given."""

    def __init__(self) -> None:
        self._batches: list[TrackedBatch] = []

    def _get(self, index: int) -> TrackedBatch:
        if not 0 <= index < len(self._batches):
            raise BatchNotFoundError(index)
        return self._batches[index]

    def queue_fetches(self, feeds: Iterable[int], db: Database, strategies: StrategyList) -> int:
        """Start a batch in the background and return its index."""
        index = len(self._batches)
        self._batches.append(TrackedBatch.start(feeds, strategies, db, index))
        return index

    def get_status(self, index: int) -> Batch:
        return self._get(index).status

    def subscribe(self, index: int) -> asyncio.Queue[BatchStatusUpdate]:
        return self._get(index).listener.subscribe()

    async def await_fetch(self, index: int) -> None:
        """Wait for a batch to finish; only one caller may wait for each batch."""
        tracked = self._get(index)
        task, tracked.task = tracked.task, None
        if task is None:
            raise NoJoinHandleError()
        await task