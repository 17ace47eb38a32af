import asyncio

import pytest

from feedfetcher.batch import BatchStatusUpdate
from feedfetcher.batch_tracker import (
    BatchNotFoundError,
    BatchTracker,
    BroadcastListener,
    NoJoinHandleError,
    TrackedBatch,
)
from feedfetcher.database import Database, Fetch
from feedfetcher.mock import MockStrategy
from feedfetcher.strategy_list import StrategyList


@pytest.fixture
def db():
    database = Database()
    yield database
    database.close()


def _feeds(db, count, url="ok"):
    strategy = MockStrategy()
    return [
        db.add_feed(f"AutoTestFeed {strategy.name} {url}", url, strategy.name)
        for _ in range(count)
    ]


def _drain(queue):
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


@pytest.mark.asyncio
async def test_tracked(db):
    feed1, feed2 = _feeds(db, 2)
    tracker = BatchTracker()

    index = tracker.queue_fetches([feed1.id, feed2.id], db, StrategyList([MockStrategy()]))
    await asyncio.wait_for(tracker.await_fetch(index), 5)

    status = tracker.get_status(index)
    assert status.total == 2
    assert len(status.finished) == 2
    assert len(db.fetches_for_feed(feed1.id)) == 1
    assert len(db.fetches_for_feed(feed2.id)) == 1


@pytest.mark.asyncio
async def test_indexes_count_up(db):
    [feed] = _feeds(db, 1)
    strategies = StrategyList([MockStrategy()])
    tracker = BatchTracker()

    first = tracker.queue_fetches([feed.id], db, strategies)
    second = tracker.queue_fetches([feed.id], db, strategies)
    await tracker.await_fetch(first)
    await tracker.await_fetch(second)

    assert (first, second) == (0, 1)
    assert len(db.fetches_for_feed(feed.id)) == 2


@pytest.mark.asyncio
async def test_unknown_index(db):
    tracker = BatchTracker()
    with pytest.raises(BatchNotFoundError, match="index 5"):
        tracker.get_status(5)
    with pytest.raises(BatchNotFoundError):
        tracker.subscribe(-1)
    with pytest.raises(BatchNotFoundError) as caught:
        await tracker.await_fetch(0)
    assert caught.value.index == 0


@pytest.mark.asyncio
async def test_await_twice(db):
    [feed] = _feeds(db, 1)
    tracker = BatchTracker()
    index = tracker.queue_fetches([feed.id], db, StrategyList([MockStrategy()]))

    await tracker.await_fetch(index)
    with pytest.raises(NoJoinHandleError):
        await tracker.await_fetch(index)
    assert tracker.get_status(index).is_done()


@pytest.mark.asyncio
async def test_subscribe_receives_updates(db):
    feed1, feed2 = _feeds(db, 2)
    tracker = BatchTracker()
    index = tracker.queue_fetches([feed1.id, feed2.id], db, StrategyList([MockStrategy()]))
    updates = tracker.subscribe(index)

    await tracker.await_fetch(index)

    assert _drain(updates) == [
        BatchStatusUpdate(total=2, done=1),
        BatchStatusUpdate(total=2, done=2),
    ]


@pytest.mark.asyncio
async def test_tracked_batch_start(db):
    [feed] = _feeds(db, 1)
    tracked = TrackedBatch.start([feed.id], StrategyList([MockStrategy()]), db, "test")
    updates = tracked.listener.subscribe()

    await asyncio.wait_for(tracked.task, 5)

    assert tracked.task.get_name() == "tracked batch test"
    assert tracked.status.is_done()
    assert isinstance(tracked.status.finished[0], Fetch)
    assert _drain(updates) == [BatchStatusUpdate(total=1, done=1)]


@pytest.mark.asyncio
async def test_broadcast_listener_fans_out():
    listener = BroadcastListener()
    first = listener.subscribe()
    second = listener.subscribe()
    update = BatchStatusUpdate(total=4, done=2)

    await listener.fetch_finished(update)
    late = listener.subscribe()
    later_update = BatchStatusUpdate(total=4, done=3)
    await listener.fetch_finished(later_update)

    assert _drain(first) == [update, later_update]
    assert _drain(second) == [update, later_update]
    assert _drain(late) == [later_update]