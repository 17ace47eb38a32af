"""Strategy that lists a channel's videos by running yt-dlp."""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import json
import logging
import re
import shlex
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from .database import Database, Feed
from .strategy import EntryInfo, Strategy

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"(\d{4})(\d{2})(\d{2})")

# yt-dlp reports this code when --break-on-reject stopped the listing early.
_BREAK_ON_REJECT_CODE = 101


def format_date(date: datetime.date) -> str:
    """Format a date the way yt-dlp expects it: ``YYYYMMDD``."""
    return f"{date.year:04d}{date.month:02d}{date.day:02d}"


def _parse_date(text: str) -> date:
    match = _DATE_PATTERN.fullmatch(text)
    if match is None:
        raise ValueError(f"Invalid date {text!r}, expected YYYYMMDD")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


@dataclass
class YtDlpCommand:
    """Command line options for a yt-dlp run that only dumps video metadata."""

    url: str
    date_after: Optional[date] = None
    playlist_end: Optional[int] = None
    verbose: bool = False

    def args(self) -> list[str]:
        out = ["--break-on-reject", "--simulate", "--dump-json"]
        if self.verbose:
            out.append("--verbose")
        if self.date_after is not None:
            out += ["--dateafter", format_date(self.date_after)]
        if self.playlist_end is not None:
            out += ["--playlist-end", str(self.playlist_end)]
        out.append(self.url)
        return out


def _require(info: dict, key: str, kind: type) -> object:
    if key not in info:
        raise KeyError(f"missing field `{key}`")
    value = info[key]
    if not isinstance(value, kind):
        raise TypeError(f"field `{key}` should be of type {kind.__name__}")
    return value


def parse_video_info(segment: str) -> EntryInfo:
    """Turn one line of yt-dlp's JSON output into an entry."""
    try:
        info = json.loads(segment)
        if not isinstance(info, dict):
            raise TypeError("expected a JSON object")
        video_id = _require(info, "id", str)
        title = _require(info, "title", str)
        webpage_url = _require(info, "webpage_url", str)
        upload_date = _parse_date(_require(info, "upload_date", str))
        embeddable = _require(info, "playable_in_embed", bool)
    except (ValueError, TypeError, KeyError) as err:
        raise ValueError(f'While parsing: "{segment}"') from err

    entry = EntryInfo(video_id, title, webpage_url, upload_date)
    if embeddable:
        entry.embed_url = f"www.youtube-nocookie.com/embed/{video_id}"
    return entry


@dataclass(frozen=True)
class AfterDate:
    """Only fetch videos uploaded after a date."""

    date: date

    def apply(self, command: YtDlpCommand) -> None:
        command.date_after = self.date


@dataclass(frozen=True)
class Amount:
    """Only fetch the most recent videos, this many of them."""

    amount: int

    def apply(self, command: YtDlpCommand) -> None:
        command.playlist_end = self.amount


Limit = Union[AfterDate, Amount]


@dataclass
class YtDlpStrategy(Strategy):
    """Fetches with the yt-dlp program.

    Feeds whose url holds no ``/`` are taken to be channel ids. Without a
    stored entry to continue from, ``backup_limit`` bounds the listing.
    """

    name = "yt-dlp"

    command: str = "yt-dlp"
    backup_limit: Limit = field(default_factory=lambda: Amount(10))

    async def fetch(self, db: Database, feed: Feed) -> str:
        last_entry = db.latest_entry(feed.id)

        url = feed.url
        if "/" not in url:
            url = f"www.youtube.com/channel/{url}/videos"
            logger.info("Expanded url: %s", url)

        command = YtDlpCommand(url, verbose=True)
        if last_entry is not None:
            command.date_after = last_entry.produced_date
        else:
            self.backup_limit.apply(command)

        args = command.args()
        logger.info("Running yt-dlp command to fetch: %s", shlex.join([self.command, *args]))

        process = await asyncio.create_subprocess_exec(
            self.command,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        except BaseException:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
            raise

        logger.info("yt-dlp stderr:\n%s", stderr.decode("utf-8", errors="replace"))

        if process.returncode not in (0, _BREAK_ON_REJECT_CODE):
            raise RuntimeError(
                f"Process returned non-successful exit code: {process.returncode}"
            )
        return stdout.decode("utf-8")

    async def parse(self, data: str) -> list[EntryInfo]:
        segments = data.strip().split("\n")
        return [parse_video_info(segment) for segment in segments if segment]