"""
Unit tests for text and field-access helpers and list settings parsing.
"""

import pytest

from config import parse_list_value
from utils.field_access import (
    first_match,
    first_number,
    first_present,
    first_text,
    pick_field,
    read_field,
    to_boolean,
    to_integer,
    to_number,
    to_timestamp,
)
from utils.text_utils import escape_ilike, normalize, normalize_part_key, truncate, uniq_strings


class TestTextUtils:

    def test_normalize(self):
        assert normalize("  Zebra Technologies ") == "zebra technologies"
        assert normalize(None) == ""

    def test_normalize_part_key(self):
        assert normalize_part_key("AXC-0149 0001") == "axc01490001"
        assert normalize_part_key(None) == ""

    def test_escape_ilike(self):
        assert escape_ilike("50%_off") == "50\\%\\_off"

    def test_uniq_strings(self):
        assert uniq_strings(["a", " a ", None, "", "b", 3, "a"]) == ["a", "b"]

    def test_truncate(self):
        assert truncate("x" * 300) == "x" * 200
        assert truncate(None) == ""


class TestFieldAccess:

    def test_read_field_spellings(self):
        assert read_field({"ItemStatus": "A"}, "ItemStatus") == "A"
        assert read_field({"itemStatus": "B"}, "ItemStatus") == "B"
        assert read_field({"item_status": "C"}, "ItemStatus") == "C"
        assert read_field("not a dict", "ItemStatus") is None

    def test_pick_field_prefers_detail(self):
        assert pick_field({"Manufacturer": "D"}, {"Manufacturer": "S"}, "Manufacturer") == "D"
        assert pick_field({}, {"Manufacturer": "S"}, "Manufacturer") == "S"

    def test_first_present_skips_none_only(self):
        assert first_present({"a": None, "b": 0}, ("a", "b")) == 0

    def test_first_match_is_lazy(self):
        calls = []

        def accessor(value):
            def read():
                calls.append(value)
                return value
            return read

        assert first_match([accessor(None), accessor(2), accessor(3)], lambda v: v is not None) == 2
        assert calls == [None, 2]

    def test_first_text(self):
        assert first_text(None, "  ", " x ") == "x"
        assert first_text(None) is None

    @pytest.mark.parametrize("value, expected", [
        ("1.5", 1.5),
        (2, 2.0),
        ("", None),
        ("abc", None),
        (True, None),
        (float("nan"), None),
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    def test_to_integer(self):
        assert to_integer("12 EA") == 12
        assert to_integer(3.9) == 3
        assert to_integer("EA") is None

    @pytest.mark.parametrize("value, expected", [
        ("Y", True),
        ("no", False),
        (1, True),
        ("maybe", None),
        (None, None),
    ])
    def test_to_boolean(self, value, expected):
        assert to_boolean(value) is expected

    def test_to_timestamp(self):
        assert to_timestamp("2024-05-01T00:00:00Z") == "2024-05-01T00:00:00+00:00"
        assert to_timestamp("yesterday") is None

    def test_first_number(self):
        assert first_number({"MSRP": "n/a", "msrp": "9.5"}, ("MSRP", "msrp")) == 9.5


class TestParseListValue:

    @pytest.mark.parametrize("raw, expected", [
        ('["1700", "1750"]', ["1700", "1750"]),
        ("1710", ["1710"]),
        ("1710, 1720", ["1710", "1720"]),
        (["1710,1720", "1730"], ["1710", "1720", "1730"]),
        ("", []),
        (None, []),
    ])
    def test_parse_list_value(self, raw, expected):
        assert parse_list_value(raw) == expected
