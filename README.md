# feedfetcher

Fetch entries for a list of feeds. Every feed names a *strategy* that knows
how to download the feed's raw data and parse it into entries. Each run is
recorded as a fetch in a SQLite database, with its status, content, error
and the log written under the `feedfetcher` logger while it ran.

## Installing

```
pip install .
```

There are no runtime dependencies beyond the standard library. The
`yt-dlp` strategy runs the `yt-dlp` program, so that program must be on
your `PATH` if you use it.

## Storing feeds

`feedfetcher.database.Database` opens (or creates) a SQLite database with
tables for feeds, fetches, entries and the links between fetches and
entries. It can be used as a context manager and closes the connection on
exit.

```python
from feedfetcher.database import Database

db = Database(":memory:")
feed = db.add_feed("Some channel", "ok", "Mock test")
```

Besides `add_feed` it offers `get_feed`, `all_feeds`, `latest_entry`,
`save_fetch`, `get_fetch`, `fetches_for_feed`, `save_entries`,
`entries_for_fetch` and `fetches_for_entry`. Entries are identified per
feed by the id the strategy gave them, so fetching the same entry again
updates it and links it to the new fetch.

## Strategies

A strategy subclasses `feedfetcher.strategy.Strategy`, has a `name`, and
implements two coroutines: `fetch(db, feed)`, returning raw text, and
`parse(data)`, returning a list of `EntryInfo`. `run_strategy(db, feed,
strategy)` runs both and stores the outcome. Every fetch ends in one of the
`FetchStatus` values: `FETCH_ERROR`, `PARSE_ERROR`, `ENTRY_UPDATE_ERROR` or
`SUCCESS`; on failure the error text is kept in the fetch.

Included strategies:

- `feedfetcher.yt_dlp.YtDlpStrategy` (name `"yt-dlp"`) runs `yt-dlp` to list
  a channel's videos. A feed url without a `/` is taken to be a channel id.
  It continues after the date of the newest stored entry, or otherwise
  applies `backup_limit`, either `Amount(n)` (default `Amount(10)`) or
  `AfterDate(date)`.
- `feedfetcher.mock.MockStrategy` (name `"Mock test"`) picks its behaviour
  from the feed's url, and `feedfetcher.mock.CommandStrategy` (name
  `"commandable mock"`) waits for `FetchCommand`s sent with `send`. Both are
  meant for exercising the fetch machinery.

## Running feeds

A `StrategyList` holds the strategies you know about. Running a feed looks
up the strategy by the name stored with the feed.

```python
import asyncio
from feedfetcher.strategy_list import StrategyList
from feedfetcher.mock import MockStrategy

strategies = StrategyList()
strategies.add(MockStrategy())

fetch = asyncio.run(strategies.run(db, feed))
print(fetch.status)
```

`run_id` does the same from a feed id and raises `NoSuchFeedError` if there
is no such feed. An unknown strategy name raises `StrategyNotFoundError`.

## Batches

`feedfetcher.batch.fetch_batch` prepares fetching many feeds at once. It
returns a `Batch`, which collects a fetch or an exception per feed in the
order they complete, and a coroutine that does the work, telling a
`Listener` the progress after each feed.

`feedfetcher.batch_tracker.BatchTracker` starts batches in background tasks
and keeps them by index, so their progress can be looked up, subscribed to
or awaited later. It must be used while an event loop is running:

```python
from feedfetcher.batch_tracker import BatchTracker

async def fetch_everything():
    tracker = BatchTracker()
    ids = [feed.id for feed in db.all_feeds()]
    index = tracker.queue_fetches(ids, db, strategies)
    updates = tracker.subscribe(index)   # an asyncio.Queue of BatchStatusUpdate
    await tracker.await_fetch(index)
    return tracker.get_status(index).status()
```

An unknown index raises `BatchNotFoundError`; awaiting the same batch twice
raises `NoJoinHandleError`.

`BatchStatus` from `feedfetcher.batch_status` turns a batch into a small
summary with `is_finished()` and `describe()` (for example
`"Finished: 1 / 2"`).

## Search queries

`feedfetcher.query` has `Query`, `Filter` and `QueryString`. A
`QueryString` turns a query into compact JSON text and `QueryString.parse`
reads it back, raising `ValueError` on invalid input, so a query can be
carried in a URL. Filters are carried by name with their arguments; this
package does not apply them to database queries.

## Display helpers

`feedfetcher.display` has `format_link`, which puts `https://` in front of
a URL that has no scheme, `reflect_to_string`, which turns field values
into display text, and `shorten`, which cuts long text down to at most 55
characters of its first line followed by `...`.

## What this package does not do

It is a library only: it has no command-line program, no web server and no
user interface for browsing feeds, entries or fetches.