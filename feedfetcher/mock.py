"""Strategies with scripted behaviour, for exercising the fetch machinery."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import date, timedelta

from .database import Database, Feed
from .strategy import EntryInfo, Strategy

logger = logging.getLogger(__name__)

_START_DATE = date(2000, 1, 1)


class MockStrategy(Strategy):
    """Chooses its behaviour from the feed's url.

    ``"<n>n<new>"`` yields ``n`` entries of which ``new`` are newer than the
    latest stored entry.
    """

    name = "Mock test"

    async def fetch(self, db: Database, feed: Feed) -> str:
        url = feed.url
        if url == "ok":
            return "Mock ok"
        if url == "log ok":
            logger.info("Mock fetch log")
            return "Mock logged"
        if url == "log parse err":
            logger.info("Mock fetch log")
            return "Mock parse log error"
        if url == "log fetch err":
            logger.error("Mock fetch err")
            raise RuntimeError("Mock fetch log error")
        if url == "parse error":
            return "Mock don't parse this"
        if url == "fetch error":
            raise RuntimeError("Mock fetch error")
        if "n" in url:
            total_text, new_text = url.split("n", 1)
            total = int(total_text)
            new = int(new_text)
            last_entry = db.latest_entry(feed.id)
            last = 0 if last_entry is None else int(last_entry.feed_entry_id)
            repeated = total - new
            lower = max(0, last - repeated + 1)
            return f"{lower}-{lower + total}"
        raise ValueError("Unknown url, don't know which mocked behaviour to use")

    async def parse(self, data: str) -> list[EntryInfo]:
        if data == "Mock ok":
            return []
        if data == "Mock logged":
            logger.info("Mock parse log")
            return []
        if data == "Mock parse log error":
            logger.error("Mock parse err")
            raise RuntimeError("Mock parse log error")
        if data == "parse error":
            raise ValueError("This mock shouldn't be parsed")
        if "-" in data:
            start_text, end_text = data.split("-", 1)
            start = int(start_text)
            end = int(end_text)
            return [
                EntryInfo(
                    str(i),
                    f"Entry {i}",
                    f"example.com/{i}",
                    _START_DATE + timedelta(days=i),
                )
                for i in range(start, end)
            ]
        raise ValueError("idk what even is this")


class FetchCommandKind(enum.Enum):
    FETCH = "fetch"
    PARSE = "parse"


@dataclass(frozen=True)
class FetchCommand:
    """Lets a waiting fetch or parse of the feed with ``feed_id`` continue."""

    kind: FetchCommandKind
    feed_id: int


class CommandStrategy(Strategy):
    """Fetches and parses only once told to by a matching command.

    Commands reach only the calls that are waiting when they are sent.
    """

    name = "commandable mock"

    def __init__(self) -> None:
        self._waiting: set[asyncio.Queue[FetchCommand]] = set()

    def send(self, command: FetchCommand) -> int:
        """Broadcast a command; returns how many waiting calls received it."""
        for queue in self._waiting:
            queue.put_nowait(command)
        return len(self._waiting)

    async def _wait_for(self, expected: FetchCommand) -> None:
        queue: asyncio.Queue[FetchCommand] = asyncio.Queue()
        self._waiting.add(queue)
        try:
            while await queue.get() != expected:
                pass
        finally:
            self._waiting.discard(queue)

    async def fetch(self, db: Database, feed: Feed) -> str:
        await self._wait_for(FetchCommand(FetchCommandKind.FETCH, feed.id))
        return str(feed.id)

    async def parse(self, data: str) -> list[EntryInfo]:
        feed_id = int(data)
        await self._wait_for(FetchCommand(FetchCommandKind.PARSE, feed_id))
        return []