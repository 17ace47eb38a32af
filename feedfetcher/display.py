"""Turning stored values into short, human-readable text."""

from __future__ import annotations

import enum
import logging
from datetime import date, datetime, time
from typing import Any

logger = logging.getLogger(__name__)

SHORTENED_MAX_SIZE = 55
_UNKNOWN = "🤷"


def format_link(url: str) -> str:
    """Make a url usable as a link by adding ``https://`` when it has no scheme."""
    url = str(url)
    if "://" not in url:
        url = f"https://{url}"
    return url


def reflect_to_string(value: Any) -> str:
    """Text to display for a stored value.

    Strings, integers, booleans, enums (such as fetch statuses), dates, times
    and date-times are supported; ``None`` shows as nothing. Anything else is
    logged and shown as a shrug.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, enum.Enum):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    logger.error("Don't know how to display a %s", type(value).__qualname__)
    return _UNKNOWN


def shorten(text: str) -> str:
    """Cut text down to the start of its first line, marking what was left out."""
    trimmed = text.strip()
    first_line = trimmed.split("\n", 1)[0]
    shortened = first_line[:SHORTENED_MAX_SIZE]
    if len(shortened) == len(trimmed):
        return shortened
    if len(shortened) == len(first_line):
        # The whole first line fits; keep a gap before the ellipsis.
        shortened += " "
    return shortened + "..."