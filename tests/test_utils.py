"""Tests for shared utility functions."""

import pytest

from appointment_engine.utils import (
    format_hhmm,
    normalize_phone,
    overlaps,
    parse_hhmm,
    parse_hours_range,
)


class TestNormalizePhone:
    def test_strips_mask(self):
        assert normalize_phone("(11) 98765-4321") == "11987654321"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+55 11 98765 4321") == "+5511987654321"

    def test_strips_whitespace(self):
        assert normalize_phone("  11987654321  ") == "11987654321"


class TestTimes:
    def test_parse_and_format(self):
        assert parse_hhmm("09:30") == 570
        assert format_hhmm(570) == "09:30"

    def test_parse_single_digit_hour(self):
        assert parse_hhmm("9:05") == 545

    @pytest.mark.parametrize("value", ["24:00", "10h00", "", "12:60"])
    def test_parse_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestHoursRange:
    def test_dash_range(self):
        assert parse_hours_range("09:00-20:00") == (540, 1200)

    def test_worded_range(self):
        assert parse_hours_range("09:00 às 18:00") == (540, 1080)

    def test_single_digit_hours(self):
        assert parse_hours_range("9:00 - 18:00") == (540, 1080)

    @pytest.mark.parametrize("value", [None, "", "Closed", "fechado"])
    def test_closed(self, value):
        assert parse_hours_range(value) is None

    @pytest.mark.parametrize("value", ["all day", "09:00", "18:00-09:00"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hours_range(value)


class TestOverlaps:
    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(0, 30, 30, 60)
        assert not overlaps(30, 60, 0, 30)

    def test_contained_interval_overlaps(self):
        assert overlaps(10, 20, 0, 60)

    def test_partial_overlap(self):
        assert overlaps(0, 31, 30, 60)
