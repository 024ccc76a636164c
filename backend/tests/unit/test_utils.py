"""Tests for value coercion, tax ID checks and timestamps"""
from datetime import datetime, timezone

from docrequest.utils.idgen import stable_request_id, token_fingerprint, token_ref
from docrequest.utils.tax_id import is_tax_id_checksum_ok, is_tax_id_format_ok, normalize_tax_id
from docrequest.utils.text import (
    clamp_text,
    is_present,
    is_same_cell_value,
    to_bool_strict,
    to_number_or_blank,
    truncate_with_marker,
    unique_list,
)
from docrequest.utils.time import format_iso, timestamp_millis


class TestTaxId:
    def test_valid_checksum(self):
        assert is_tax_id_format_ok("1234567890121")
        assert is_tax_id_checksum_ok("1234567890121")

    def test_wrong_check_digit(self):
        assert is_tax_id_format_ok("1234567890122")
        assert not is_tax_id_checksum_ok("1234567890122")

    def test_separators_are_ignored(self):
        assert normalize_tax_id("1-2345-67890-12-1") == "1234567890121"
        assert is_tax_id_checksum_ok("1-2345-67890-12-1")

    def test_wrong_length_fails_both_checks(self):
        assert not is_tax_id_format_ok("123456789012")
        assert not is_tax_id_checksum_ok("123456789012")
        assert not is_tax_id_format_ok(None)


class TestCoercion:
    def test_bool_only_explicit_markers(self):
        assert to_bool_strict(True)
        assert to_bool_strict("TRUE")
        assert to_bool_strict(" yes ")
        assert to_bool_strict(1)
        assert not to_bool_strict("false")
        assert not to_bool_strict("maybe")
        assert not to_bool_strict(None)
        assert not to_bool_strict(2)

    def test_number_strips_thousands_separators(self):
        assert to_number_or_blank("1,234.50") == 1234.5
        assert to_number_or_blank("2,000") == 2000
        assert to_number_or_blank(12.0) == 12

    def test_number_blank_for_garbage(self):
        assert to_number_or_blank("abc") == ""
        assert to_number_or_blank("") == ""
        assert to_number_or_blank(True) == ""
        assert to_number_or_blank(float("inf")) == ""

    def test_number_blank_for_ints_beyond_float_range(self):
        assert to_number_or_blank(10 ** 400) == ""
        assert to_number_or_blank(-(10 ** 400)) == ""
        assert to_number_or_blank("9" * 400) == ""

    def test_clamp_reports_truncation(self):
        assert clamp_text("  hello  ", 10) == ("hello", False)
        assert clamp_text("abcdef", 3) == ("abc", True)

    def test_truncate_with_marker(self):
        assert truncate_with_marker("short", 10) == "short"
        assert truncate_with_marker("x" * 12, 10) == "x" * 10 + "...(truncated)"

    def test_presence(self):
        assert is_present("a")
        assert is_present(0)
        assert not is_present("   ")
        assert not is_present(False)
        assert not is_present(None)

    def test_cell_comparison_ignores_type(self):
        assert is_same_cell_value(5, "5")
        assert is_same_cell_value(5.0, 5)
        assert is_same_cell_value(None, "")
        assert is_same_cell_value(True, "true")
        assert not is_same_cell_value("a", "b")

    def test_unique_list_keeps_order(self):
        assert unique_list(["b", "a", "", "b", None, "c"]) == ["b", "a", "c"]


class TestIds:
    def test_request_id_is_stable(self):
        assert stable_request_id("U123") == "req_U123"
        assert stable_request_id("U123") == stable_request_id("U123")

    def test_token_fingerprint_and_ref(self):
        fingerprint = token_fingerprint("some.jwt.token")
        assert len(fingerprint) == 40
        assert fingerprint == token_fingerprint("some.jwt.token")
        assert token_ref("abcdefghij") == "efghij"
        assert token_ref("") == ""


class TestTime:
    def test_format_iso_uses_millis_and_z(self):
        dt = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_iso(dt) == "2024-01-02T03:04:05.678Z"

    def test_timestamp_millis_best_effort(self):
        dt = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert timestamp_millis(dt) == int(dt.timestamp() * 1000)
        assert timestamp_millis("2024-01-01T00:00:00.000Z") == int(dt.timestamp() * 1000)
        assert timestamp_millis("not a date") == 0
        assert timestamp_millis("") == 0
        assert timestamp_millis(None) == 0
