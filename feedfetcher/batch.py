"""Fetching a list of feeds concurrently while reporting progress."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Coroutine, Iterable, Union

from .database import Database, Fetch
from .strategy_list import StrategyList

logger = logging.getLogger(__name__)

FetchResult = Union[Fetch, Exception]


@dataclass(frozen=True)
class BatchStatusUpdate:
    total: int
    done: int


@dataclass
class Batch:
    """Results of a batch so far; ``finished`` holds a fetch or an error per feed."""

    total: int
    finished: list[FetchResult] = field(default_factory=list)

    def add_done(self, result: FetchResult) -> None:
        self.finished.append(result)

    def is_done(self) -> bool:
        return self.total == len(self.finished)

    def status(self) -> BatchStatusUpdate:
        return BatchStatusUpdate(total=self.total, done=len(self.finished))


class Listener(ABC):
    """Told about progress each time a fetch of a batch finishes."""

    @abstractmethod
    async def fetch_finished(self, update: BatchStatusUpdate) -> None:
        ...


@dataclass
class ListenerPair(Listener):
    """Passes every update on to two listeners, first then second."""

    first: Listener
    second: Listener

    async def fetch_finished(self, update: BatchStatusUpdate) -> None:
        await self.first.fetch_finished(update)
        await self.second.fetch_finished(update)


def fetch_batch(
    feeds: Iterable[int],
    listener: Listener,
    strategies: StrategyList,
    db: Database,
) -> tuple[Batch, Coroutine[None, None, None]]:
    """Prepare fetching the feeds with the given ids, each in its own task.

    Returns the batch that collects results and the coroutine that does the
    work. Results arrive in completion order, not in the order of ``feeds``.
    """
    feeds = list(feeds)
    batch = Batch(len(feeds))
    return batch, run_fetch_batch(feeds, batch, listener, strategies, db)


async def _fetch_one(feed_id: int, strategies: StrategyList, db: Database) -> FetchResult:
    try:
        return await strategies.run_id(feed_id, db)
    except Exception as err:
        logger.error("Fetching feed %s failed: %s", feed_id, err)
        return err


async def run_fetch_batch(
    feeds: Iterable[int],
    batch: Batch,
    listener: Listener,
    strategies: StrategyList,
    db: Database,
) -> None:
    """Fetch every feed concurrently, recording each result in ``batch``."""
    logger.info("starting batch fetch")
    tasks = [asyncio.create_task(_fetch_one(feed_id, strategies, db)) for feed_id in feeds]
    try:
        for next_done in asyncio.as_completed(tasks):
            batch.add_done(await next_done)
            await listener.fetch_finished(batch.status())
            if batch.is_done():
                break
    finally:
        for task in tasks:
            task.cancel()
    logger.info("finished batch fetch")