import sqlite3
from datetime import date, time

import pytest

from feedfetcher.database import Database, Feed, Fetch, FetchStatus
from feedfetcher.strategy import EntryInfo


@pytest.fixture
def db():
    database = Database()
    yield database
    database.close()


def _fetch(feed, status=FetchStatus.ENTRY_UPDATE_ERROR):
    return Fetch(feed_id=feed.id, url=feed.url, strategy=feed.strategy, status=status)


def test_add_and_get_feed(db):
    feed = db.add_feed("name", "ok", "strat")
    assert db.get_feed(feed.id) == feed
    assert feed == Feed(id=feed.id, name="name", url="ok", strategy="strat")


def test_get_missing_feed_is_none(db):
    assert db.get_feed(999) is None


def test_all_feeds_in_creation_order(db):
    first = db.add_feed("a", "url-a", "s")
    second = db.add_feed("b", "url-b", "s")
    assert db.all_feeds() == [first, second]


def test_save_fetch_round_trip(db):
    feed = db.add_feed("name", "ok", "strat")
    unsaved = _fetch(feed, FetchStatus.FETCH_ERROR)
    unsaved.error = "boom"
    saved = db.save_fetch(unsaved)
    assert unsaved.id is None
    assert db.get_fetch(saved.id) == saved
    assert db.fetches_for_feed(feed.id) == [saved]


def test_save_fetch_updates_existing(db):
    feed = db.add_feed("name", "ok", "strat")
    saved = db.save_fetch(_fetch(feed))
    saved.status = FetchStatus.SUCCESS
    saved.log = "log text"
    resaved = db.save_fetch(saved)
    assert resaved.id == saved.id
    stored = db.get_fetch(saved.id)
    assert stored.status == FetchStatus.SUCCESS
    assert stored.log == "log text"
    assert len(db.fetches_for_feed(feed.id)) == 1


def test_save_fetch_with_unknown_id_raises(db):
    feed = db.add_feed("name", "ok", "strat")
    fetch = _fetch(feed)
    fetch.id = 12345
    with pytest.raises(LookupError):
        db.save_fetch(fetch)


def test_save_fetch_for_missing_feed_raises(db):
    fetch = Fetch(feed_id=404, url="x", strategy="s", status=FetchStatus.SUCCESS)
    with pytest.raises(sqlite3.IntegrityError):
        db.save_fetch(fetch)


def test_save_entries_links_fetches(db):
    feed = db.add_feed("name", "ok", "strat")
    info = EntryInfo("1", "Entry 1", "example.com/1", date(2000, 1, 2), produced_time=time(12, 30))
    first_fetch = db.save_fetch(_fetch(feed))
    [entry] = db.save_entries(feed.id, first_fetch.id, [info])
    assert entry.name == "Entry 1"
    assert entry.produced_time == time(12, 30)
    assert entry.viewed is False

    renamed = EntryInfo("1", "Renamed", "example.com/1", date(2000, 1, 2), embed_url="embed/1")
    second_fetch = db.save_fetch(_fetch(feed))
    [updated] = db.save_entries(feed.id, second_fetch.id, [renamed])
    assert updated.id == entry.id
    assert updated.name == "Renamed"
    assert updated.embed_url == "embed/1"
    assert [f.id for f in db.fetches_for_entry(entry.id)] == [first_fetch.id, second_fetch.id]
    assert db.entries_for_fetch(first_fetch.id) == [updated]


def test_failed_save_entries_rolls_back(db):
    feed = db.add_feed("name", "ok", "strat")
    fetch = db.save_fetch(_fetch(feed))
    good = EntryInfo("1", "Entry 1", "example.com/1", date(2000, 1, 2))
    bad = EntryInfo("2", "Entry 2", "example.com/2", "not a date")
    with pytest.raises(AttributeError):
        db.save_entries(feed.id, fetch.id, [good, bad])
    assert db.entries_for_fetch(fetch.id) == []
    assert db.latest_entry(feed.id) is None


def test_latest_entry_has_newest_date(db):
    feed = db.add_feed("name", "ok", "strat")
    fetch = db.save_fetch(_fetch(feed))
    db.save_entries(
        feed.id,
        fetch.id,
        [
            EntryInfo("late", "Late", "example.com/late", date(2000, 1, 5)),
            EntryInfo("early", "Early", "example.com/early", date(2000, 1, 2)),
        ],
    )
    assert db.latest_entry(feed.id).feed_entry_id == "late"
    assert [e.feed_entry_id for e in db.entries_for_fetch(fetch.id)] == ["early", "late"]