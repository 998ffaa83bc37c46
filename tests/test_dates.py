from datetime import datetime, timezone

import pytest

from feedpull.dates import parse_iso_date, parse_rss_date
from feedpull.models import EPOCH


def test_gmt_matches_explicit_offset():
    assert parse_rss_date("Mon, 02 Jan 2006 15:04:05 GMT") == parse_rss_date("Mon, 02 Jan 2006 15:04:05 +0000")
    assert parse_rss_date("Mon, 02 Jan 2006 15:04:05 GMT") == datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


def test_edt_is_read_as_utc():
    assert parse_rss_date("Mon, 02 Jan 2006 15:04:05 EDT") == datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


def test_numeric_offset_is_normalized_to_utc():
    assert parse_rss_date("Mon, 02 Jan 2006 15:04:05 -0700") == datetime(2006, 1, 2, 22, 4, 5, tzinfo=timezone.utc)


def test_rss_date_falls_back_to_iso():
    assert parse_rss_date("  2006-01-02T15:04:05Z  ") == datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "yesterday", "2006-01-02 15:04"])
def test_rss_date_defaults_to_epoch(value):
    assert parse_rss_date(value) == EPOCH


def test_iso_date():
    assert parse_iso_date("2024-03-01T10:20:30Z") == datetime(2024, 3, 1, 10, 20, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["2024-03-01T10:20:30+02:00", "2024-03-01T10:20:30.123Z", "Mon, 02 Jan 2006 15:04:05 GMT"])
def test_iso_date_only_accepts_one_layout(value):
    assert parse_iso_date(value) == EPOCH
