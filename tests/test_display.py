from datetime import date, time

import pytest

from feedfetcher.database import FetchStatus
from feedfetcher.display import (
    SHORTENED_MAX_SIZE,
    format_link,
    reflect_to_string,
    shorten,
)


def test_format_link_adds_scheme():
    assert format_link("example.com/1") == "https://example.com/1"


@pytest.mark.parametrize("url", ["http://example.com", "https://example.com/a", "ftp://x"])
def test_format_link_keeps_existing_scheme(url):
    assert format_link(url) == url


def test_format_link_is_idempotent():
    once = format_link("www.youtube-nocookie.com/embed/abc")
    assert format_link(once) == once
    assert once.startswith("https://")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("hello", "hello"),
        (None, ""),
        (42, "42"),
        (-3, "-3"),
        (True, "yes"),
        (False, "no"),
        (FetchStatus.SUCCESS, "Success"),
        (FetchStatus.FETCH_ERROR, "FetchError"),
    ],
)
def test_reflect_to_string_supported_values(value, expected):
    assert reflect_to_string(value) == expected


def test_reflect_to_string_date_round_trips():
    value = date(2000, 1, 1)
    assert date.fromisoformat(reflect_to_string(value)) == value


def test_reflect_to_string_time_round_trips():
    value = time(12, 30, 5)
    assert time.fromisoformat(reflect_to_string(value)) == value


def test_reflect_to_string_unknown_value():
    assert reflect_to_string(object()) == "🤷"
    assert reflect_to_string([1, 2]) == "🤷"


def test_shorten_leaves_short_text_alone():
    assert shorten("Mock ok") == "Mock ok"


def test_shorten_strips_whitespace():
    assert shorten("  Mock ok \n") == "Mock ok"


def test_shorten_multiline_keeps_first_line():
    result = shorten("first line\nsecond line")
    assert result == "first line ..."
    assert "second" not in result


def test_shorten_long_line_is_cut():
    text = "x" * (SHORTENED_MAX_SIZE + 10)
    result = shorten(text)
    assert result.endswith("...")
    assert result[:-3] == "x" * SHORTENED_MAX_SIZE


def test_shorten_exact_length_untouched():
    text = "y" * SHORTENED_MAX_SIZE
    assert shorten(text) == text


def test_shorten_long_first_line_of_many():
    text = "z" * (SHORTENED_MAX_SIZE + 1) + "\nmore"
    result = shorten(text)
    assert result == "z" * SHORTENED_MAX_SIZE + "..."
    assert len(result) == SHORTENED_MAX_SIZE + 3