"""
Unit tests for command line input validation.
"""

from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.utils.validation import (
    MAX_BACKFILL_DAYS,
    InputValidationError,
    parse_date,
    validate_date_range,
    validate_file_path,
    validate_location_id,
)


class TestValidateLocationId:
    """Tests for validate_location_id"""

    def test_strips_whitespace(self):
        assert validate_location_id(" 2352 ") == "2352"

    @pytest.mark.parametrize("value", ["", "   ", "23 52", "23-52", "2352;", "x" * 51])
    def test_rejected(self, value):
        with pytest.raises(InputValidationError):
            validate_location_id(value)

    @given(st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789", min_size=1, max_size=50))
    def test_property_alphanumeric_accepted(self, value):
        assert validate_location_id(value) == value


class TestDates:
    """Tests for parse_date and validate_date_range"""

    def test_parse_date(self):
        assert parse_date("2026-09-01") == date(2026, 9, 1)

    @pytest.mark.parametrize("value", ["", "2026/09/01", "yesterday", "2026-13-01"])
    def test_parse_date_rejected(self, value):
        with pytest.raises(InputValidationError):
            parse_date(value, "start-date")

    def test_range(self):
        assert validate_date_range(date(2026, 9, 1), date(2026, 10, 1)) == (date(2026, 9, 1), date(2026, 10, 1))

    def test_empty_range_rejected(self):
        with pytest.raises(InputValidationError, match="must be after"):
            validate_date_range(date(2026, 9, 1), date(2026, 9, 1))

    def test_range_too_long(self):
        with pytest.raises(InputValidationError, match="exceeds maximum"):
            validate_date_range(date(2025, 1, 1), date(2026, 6, 1))

    def test_max_days_boundary(self):
        start = date(2025, 1, 1)
        end = date.fromordinal(start.toordinal() + MAX_BACKFILL_DAYS)
        assert validate_date_range(start, end) == (start, end)


class TestValidateFilePath:
    """Tests for validate_file_path"""

    def test_valid(self):
        assert validate_file_path(" movements.json ") == "movements.json"

    @pytest.mark.parametrize("value", ["", "../etc/passwd", "movements\x00.json"])
    def test_rejected(self, value):
        with pytest.raises(InputValidationError):
            validate_file_path(value)
