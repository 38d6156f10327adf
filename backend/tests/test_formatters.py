"""
Unit tests for the display formatters.

The report is read in Chile, so dates and times are checked in
America/Santiago (UTC-4 in July, UTC-3 in March) and amounts use "."
as the thousands separator.
"""

import re
from datetime import date, datetime, timezone

import pytest

from app.services.formatters import (
    format_date,
    format_hours,
    format_money,
    format_national_id,
    format_percent,
    format_range_label,
    format_time,
    now_local,
)


# --- National ID (RUT) ---

@pytest.mark.parametrize("raw, expected", [
    ("12345678-5", "12.345.678-5"),
    ("12.345.678-5", "12.345.678-5"),
    ("123456785", "12.345.678-5"),
    ("7654321-k", "7.654.321-k"),
    ("1-9", "1-9"),
    ("5", "5"),
])
def test_format_national_id(raw, expected):
    assert format_national_id(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "--"])
def test_format_national_id_missing(raw):
    assert format_national_id(raw) == "N/A"


def test_format_national_id_is_stable_on_its_own_output():
    once = format_national_id("12345678-5")
    assert format_national_id(once) == once


@pytest.mark.parametrize("digits", [
    "123456785", "12345678k", "76543210", "1234", "19", "5",
])
def test_format_national_id_keeps_every_character(digits):
    # only separators are added, nothing is dropped or reordered
    assert re.sub(r"[.\-]", "", format_national_id(digits)) == digits


# --- Dates and times ---

def test_format_date_converts_to_report_timezone():
    # 02:00 UTC on July 1st is 22:00 on June 30th in Santiago
    moment = datetime(2026, 7, 1, 2, 0, tzinfo=timezone.utc)
    assert format_date(moment) == "30-06-2026"
    assert format_time(moment) == "22:00"


def test_format_time_in_summer_offset():
    moment = datetime(2026, 3, 15, 15, 30, tzinfo=timezone.utc)
    assert format_date(moment) == "15-03-2026"
    assert format_time(moment) == "12:30"


def test_naive_datetimes_are_utc():
    assert format_time(datetime(2026, 7, 1, 2, 0)) == "22:00"


def test_iso_strings_are_parsed():
    assert format_date("2026-07-01T02:00:00Z") == "30-06-2026"
    assert format_time("2026-07-01T12:15:00+00:00") == "08:15"


def test_plain_dates_are_not_shifted():
    assert format_date(date(2026, 1, 5)) == "05-01-2026"
    assert format_time(date(2026, 1, 5)) == "-"


@pytest.mark.parametrize("value", [None, "", "not a date"])
def test_missing_or_invalid_timestamps_render_placeholder(value):
    assert format_date(value) == "-"
    assert format_time(value) == "-"


def test_format_range_label():
    assert format_range_label(date(2026, 6, 1), date(2026, 6, 30)) == "01-06-2026 - 30-06-2026"


def test_now_local_uses_report_timezone():
    local = now_local(datetime(2026, 7, 1, 2, 0, tzinfo=timezone.utc))
    assert (local.year, local.month, local.day) == (2026, 6, 30)


# --- Numbers ---

@pytest.mark.parametrize("amount, expected", [
    (1_000_000, "$1.000.000"),
    (83333.33, "$83.333"),
    (999, "$999"),
    (0, "$0"),
    (None, "$0"),
    (-5000, "-$5.000"),
])
def test_format_money(amount, expected):
    assert format_money(amount) == expected


def test_format_hours_and_percent():
    assert format_hours(160) == "160.0 hrs"
    assert format_hours(None) == "0.0 hrs"
    assert format_percent(100 / 1.1) == "90.9%"
    assert format_percent(0) == "0.0%"
