"""Fetch strategies and the routine that runs one against a feed."""

from __future__ import annotations

import logging
import traceback
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import date, time
from typing import ClassVar, Iterator, Optional

from .database import Database, Feed, Fetch, FetchStatus

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = logging.getLogger("feedfetcher")
_captured_lines: ContextVar[Optional[list[str]]] = ContextVar("_captured_lines", default=None)


class _CaptureHandler(logging.Handler):
    """Copies records into the log buffer of the running fetch, if there is one."""

    def emit(self, record: logging.LogRecord) -> None:
        lines = _captured_lines.get()
        if lines is None:
            return
        try:
            lines.append(self.format(record))
        except Exception:
            self.handleError(record)


def _install_capture_handler() -> None:
    if not any(isinstance(h, _CaptureHandler) for h in _PACKAGE_LOGGER.handlers):
        handler = _CaptureHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        _PACKAGE_LOGGER.addHandler(handler)
    if _PACKAGE_LOGGER.level == logging.NOTSET:
        _PACKAGE_LOGGER.setLevel(logging.INFO)


_install_capture_handler()


@contextmanager
def _capture_log() -> Iterator[list[str]]:
    lines: list[str] = []
    token = _captured_lines.set(lines)
    try:
        yield lines
    finally:
        _captured_lines.reset(token)


@dataclass
class EntryInfo:
    """An entry as a strategy found it, before it is stored."""

    feed_entry_id: str
    title: str
    view_url: str
    produced_date: date
    embed_url: Optional[str] = None
    produced_time: Optional[time] = None


class Strategy(ABC):
    """A way of fetching the entries of a single feed.

    Messages logged under the ``feedfetcher`` logger while a strategy runs
    are stored with the fetch.
    """

    name: ClassVar[str]

    @abstractmethod
    async def fetch(self, db: Database, feed: Feed) -> str:
        """Retrieve the raw data of the feed."""

    @abstractmethod
    async def parse(self, data: str) -> list[EntryInfo]:
        """Turn fetched data into entries."""


def _describe_error(err: BaseException) -> str:
    text = "".join(traceback.format_exception_only(type(err), err)).strip()
    causes: list[str] = []
    seen = {id(err)}
    current: Optional[BaseException] = err
    while True:
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__ and current.__context__ is not None:
            current = current.__context__
        else:
            break
        if id(current) in seen:
            break
        seen.add(id(current))
        causes.append("".join(traceback.format_exception_only(type(current), current)).strip())
    if causes:
        listed = "\n".join(f"    {i}: {cause}" for i, cause in enumerate(causes))
        text = f"{text}\n\nCaused by:\n{listed}"
    return text


def _error_to_string(err: BaseException) -> str:
    text = _describe_error(err)
    logger.error("%s", text)
    return text


async def _do_fetch(db: Database, feed: Feed, strategy: Strategy) -> Fetch:
    """Run a fetch, leaving the final save to the caller, which adds the log."""
    logger.info("Fetching feed %r with strategy %s", feed, strategy.name)
    fetch = Fetch(
        feed_id=feed.id,
        url=feed.url,
        strategy=strategy.name,
        status=FetchStatus.FETCH_ERROR,
    )

    try:
        data = await strategy.fetch(db, feed)
    except Exception as err:
        fetch.error = _error_to_string(err)
        return fetch
    fetch.content = data

    try:
        entries = await strategy.parse(data)
    except Exception as err:
        fetch.status = FetchStatus.PARSE_ERROR
        fetch.error = _error_to_string(err)
        return fetch

    fetch.status = FetchStatus.ENTRY_UPDATE_ERROR
    fetch = db.save_fetch(fetch)
    try:
        db.save_entries(feed.id, fetch.id, entries)
    except Exception as err:
        fetch.error = _error_to_string(err)
    else:
        fetch.status = FetchStatus.SUCCESS
    return fetch


async def run_strategy(db: Database, feed: Feed, strategy: Strategy) -> Fetch:
    """Fetch and parse a feed with a strategy, store the outcome and return it."""
    with _capture_log() as lines:
        fetch = await _do_fetch(db, feed, strategy)
    fetch.log = "\n".join(lines)
    return db.save_fetch(fetch)