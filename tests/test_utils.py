"""Tests for shared utility functions."""

from datetime import datetime

import pytest

from ridersbud.utils import (
    distance_km,
    eta_minutes,
    format_slot_label,
    new_id,
    normalize_phone,
    normalize_slot_label,
    parse_hhmm,
)


class TestNormalizePhone:
    def test_strips_dashes(self):
        assert normalize_phone("555-0201-111") == "5550201111"

    def test_strips_parentheses_and_spaces(self):
        assert normalize_phone("(02) 8123 4567") == "0281234567"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+63 917 123 4567") == "+639171234567"

    def test_strips_whitespace(self):
        assert normalize_phone("  09171234567  ") == "09171234567"


class TestNewId:
    def test_prefix(self):
        assert new_id("b").startswith("b-")

    def test_unique(self):
        assert len({new_id("b") for _ in range(100)}) == 100


class TestClockHelpers:
    def test_parse_hhmm(self):
        assert parse_hhmm("08:30").hour == 8
        assert parse_hhmm(" 17:05 ").minute == 5

    def test_parse_rejects_bad_value(self):
        with pytest.raises(ValueError):
            parse_hhmm("25:00")

    @pytest.mark.parametrize("hour,minute,label", [
        (0, 0, "12:00 AM"),
        (9, 0, "09:00 AM"),
        (12, 0, "12:00 PM"),
        (13, 30, "01:30 PM"),
    ])
    def test_format_slot_label(self, hour, minute, label):
        assert format_slot_label(datetime(1900, 1, 1, hour, minute)) == label

    @pytest.mark.parametrize("typed,label", [
        ("9:00 am", "09:00 AM"),
        ("  09:00   AM ", "09:00 AM"),
        ("1:30PM", "01:30 PM"),
        ("13:30", "01:30 PM"),
        ("12:00 AM", "12:00 AM"),
    ])
    def test_normalize_slot_label(self, typed, label):
        assert normalize_slot_label(typed) == label

    @pytest.mark.parametrize("typed", ["", "noon", "13:00 PM", "9 am"])
    def test_normalize_rejects_unreadable(self, typed):
        with pytest.raises(ValueError, match="Not a valid slot time"):
            normalize_slot_label(typed)


class TestDistance:
    def test_same_point(self):
        assert distance_km(14.5995, 120.9842, 14.5995, 120.9842) == 0

    def test_one_degree_of_latitude(self):
        assert distance_km(0, 0, 1, 0) == pytest.approx(111.19, abs=0.01)

    @pytest.mark.parametrize("distance,minutes", [(0.01, 1), (10, 15), (10.1, 16)])
    def test_eta_minutes(self, distance, minutes):
        assert eta_minutes(distance) == minutes
