"""Column type conversions: storage text, typed parse, display, advisory validation."""

from datetime import date

import pytest

from unidash.core.column_types import (
    ColumnType,
    format_display,
    parse,
    to_storage,
    validate,
)


class TestColumnType:
    def test_closed_set(self):
        assert ColumnType.values() == [
            "text", "number", "date", "link", "boolean", "select", "long-text",
        ]

    def test_coerce_accepts_case_and_whitespace(self):
        assert ColumnType.coerce(" Number ") is ColumnType.NUMBER
        assert ColumnType.coerce(ColumnType.LINK) is ColumnType.LINK

    def test_coerce_rejects_unknown(self):
        with pytest.raises(ValueError):
            ColumnType.coerce("currency")


class TestToStorage:
    def test_date(self):
        assert to_storage(date(2025, 1, 15)) == "2025-01-15"

    def test_dict_is_json(self):
        assert to_storage({"a": 1}) == '{"a": 1}'

    def test_unicode_kept(self):
        assert to_storage(["Zürich"]) == '["Zürich"]'


class TestParse:
    @pytest.mark.parametrize("text, expected", [
        ("42", 42),
        ("1,000", 1000),
        ("3.25", 3.25),
        ("n/a", "n/a"),
        ("nan", "nan"),
    ])
    def test_number(self, text, expected):
        assert parse("number", text) == expected

    @pytest.mark.parametrize("text, expected", [
        ("true", True), ("Yes", True), ("0", False), ("off", False), ("maybe", "maybe"),
    ])
    def test_boolean(self, text, expected):
        assert parse("boolean", text) == expected

    def test_date_normalised(self):
        assert parse("date", "2025-09-01T00:00:00") == "2025-09-01"

    def test_none_stays_none(self):
        assert parse("number", None) is None

    def test_text_untouched(self):
        assert parse("long-text", " spaced ") == " spaced "


class TestFormatDisplay:
    def test_boolean(self):
        assert format_display("boolean", "false") == "No"

    def test_integral_float_drops_fraction(self):
        assert format_display("number", "12.0") == "12"

    def test_empty(self):
        assert format_display("text", None) == ""


class TestValidate:
    def test_empty_always_valid(self):
        for ctype in ColumnType.values():
            assert validate(ctype, None) is None
            assert validate(ctype, "") is None

    def test_link_requires_scheme(self):
        assert validate("link", "https://mit.edu") is None
        assert validate("link", "mit.edu") is not None

    def test_select_checks_options(self):
        assert validate("select", "Public", ["Public", "Private"]) is None
        assert "not one of" in validate("select", "Other", ["Public", "Private"])

    def test_select_without_options_accepts_anything(self):
        assert validate("select", "Other", None) is None

    def test_bad_date(self):
        assert validate("date", "next spring") is not None
