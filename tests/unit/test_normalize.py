"""
Unit tests for row normalization and fingerprinting.

Covers value canonicalization, stable serialization, primary-key ordering,
and per-row snapshot preparation.
"""

import math
import unicodedata
from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from src.roundtrip.errors import CollectionError, MissingPrimaryKeyError
from src.roundtrip.normalize import (
    UNDEFINED,
    SortValue,
    fingerprint,
    id_key,
    normalize_row,
    normalize_value,
    ordering_key,
    prepare_row_snapshot,
    stable_serialize,
    to_sort_value,
)
from src.roundtrip.tables import TABLES, TableConfig


class TestNormalizeValue:
    """Test normalize_value canonicalization"""

    def test_strings_are_nfc_and_trimmed(self):
        """Decomposed accents and surrounding whitespace normalize away"""
        decomposed = unicodedata.normalize("NFD", "  Café \n")

        assert normalize_value(decomposed) == "Café"

    def test_none_passes_through(self):
        assert normalize_value(None) is None

    def test_bool_is_not_turned_into_int(self):
        assert normalize_value(True) is True
        assert normalize_value(False) is False

    def test_integral_float_collapses_to_int(self):
        """3.0 and 3 must fingerprint identically"""
        result = normalize_value(3.0)

        assert result == 3
        assert isinstance(result, int)

    def test_fractional_float_kept(self):
        assert normalize_value(2.5) == 2.5

    @pytest.mark.parametrize("value,expected", [
        (math.inf, "inf"),
        (-math.inf, "-inf"),
        (math.nan, "nan"),
    ])
    def test_non_finite_numbers_become_strings(self, value, expected):
        assert normalize_value(value) == expected

    def test_decimal_values(self):
        assert normalize_value(Decimal("4.00")) == 4
        assert normalize_value(Decimal("4.25")) == 4.25
        assert normalize_value(Decimal("NaN")) == "NaN"

    def test_bytes_become_base64(self):
        assert normalize_value(b"\x00\x01\xff") == "AAH/"
        assert normalize_value(memoryview(b"abc")) == "YWJj"

    def test_dates_become_iso_strings(self):
        assert normalize_value(date(2024, 2, 29)) == "2024-02-29"
        assert normalize_value(datetime(2024, 1, 1, 12, 0, tzinfo=UTC)) == "2024-01-01T12:00:00+00:00"

    def test_mapping_keys_sorted_and_undefined_dropped(self):
        # Arrange
        value = {"b": 1, "a": {"y": " x ", "x": UNDEFINED}, "c": UNDEFINED}

        # Act
        result = normalize_value(value)

        # Assert
        assert list(result) == ["a", "b"]
        assert result["a"] == {"y": "x"}

    def test_none_values_are_kept_in_mappings(self):
        assert normalize_value({"a": None}) == {"a": None}

    def test_lists_keep_order(self):
        assert normalize_value([3.0, " b", [1.5]]) == [3, "b", [1.5]]

    def test_tuples_become_lists(self):
        assert normalize_value((1, 2)) == [1, 2]


class TestNormalizeRow:
    """Test normalize_row column exclusion"""

    def test_excluded_columns_removed(self):
        row = {"id": "a", "updated_at": 5, "title": "x"}

        assert normalize_row(row, {"updated_at"}) == {"id": "a", "title": "x"}

    def test_no_exclusions(self):
        assert normalize_row({"b": 2, "a": 1}) == {"a": 1, "b": 2}


class TestSerialization:
    """Test stable_serialize and fingerprint"""

    def test_stable_serialize_is_compact_and_sorted(self):
        assert stable_serialize({"b": [1, 2], "a": "é"}) == '{"a":"é","b":[1,2]}'

    def test_fingerprint_is_sha256_hex(self):
        digest = fingerprint({"a": 1})

        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)

    def test_fingerprint_ignores_key_order(self):
        assert fingerprint(normalize_row({"a": 1, "b": 2})) == fingerprint(normalize_row({"b": 2, "a": 1}))

    def test_fingerprint_distinguishes_bool_from_int(self):
        assert fingerprint({"v": True}) != fingerprint({"v": 1})

    def test_fingerprint_accepts_lone_surrogate(self):
        digest = fingerprint({"id": "a", "text": "\ud800"})

        assert digest == fingerprint(normalize_row({"text": "\ud800", "id": "a"}))
        assert digest != fingerprint({"id": "a", "text": "\ud801"})


class TestPrimaryKeys:
    """Test id_key, to_sort_value, and ordering_key"""

    def test_id_key_renders_integral_float_as_int(self):
        assert id_key(7.0) == "7"
        assert id_key(7) == "7"
        assert id_key("abc") == "abc"

    def test_numeric_sort_value(self):
        assert to_sort_value(10, "number", "files") == SortValue("number", 10)
        assert to_sort_value("12", "number", "files") == SortValue("number", 12.0)

    @pytest.mark.parametrize("raw", ["abc", math.nan, math.inf, True, None])
    def test_numeric_sort_value_rejects_non_finite(self, raw):
        with pytest.raises(CollectionError, match="Expected numeric identifier"):
            to_sort_value(raw, "number", "files")

    def test_string_sort_value(self):
        assert to_sort_value(5, "string", "notes") == SortValue("string", "5")

    def test_numeric_ids_order_by_value(self):
        keys = ["10", "2", "1"]
        ordered = sorted(keys, key=lambda k: ordering_key(k, SortValue("number", int(k))))

        assert ordered == ["1", "2", "10"]

    def test_string_ids_order_by_code_point(self):
        keys = ["b", "B", "a"]
        ordered = sorted(keys, key=lambda k: ordering_key(k, SortValue("string", k)))

        assert ordered == ["B", "a", "b"]


class TestPrepareRowSnapshot:
    """Test prepare_row_snapshot"""

    def test_missing_primary_key_raises(self):
        with pytest.raises(MissingPrimaryKeyError) as exc_info:
            prepare_row_snapshot({"title": "x"}, TABLES["events"], False)

        assert exc_info.value.table == "events"
        assert "id" in str(exc_info.value)

    def test_null_primary_key_raises(self):
        with pytest.raises(MissingPrimaryKeyError):
            prepare_row_snapshot({"id": None}, TABLES["notes"], False)

    def test_excluded_columns_do_not_affect_hash(self):
        config = TABLES["notes"]
        _, first = prepare_row_snapshot({"id": "n", "text": "a", "updated_at": 1}, config, False)
        _, second = prepare_row_snapshot({"id": "n", "text": "a", "updated_at": 2}, config, False)

        assert first.hash == second.hash

    def test_normalized_payload_only_on_request(self):
        config = TABLES["notes"]
        _, cheap = prepare_row_snapshot({"id": "n", "text": "a"}, config, False)
        key, detailed = prepare_row_snapshot({"id": "n", "text": "a"}, config, True)

        assert cheap.normalized is None
        assert detailed.normalized == {"id": "n", "text": "a"}
        assert key == "n"

    def test_numeric_table_key(self):
        key, snapshot = prepare_row_snapshot({"id": 3.0, "filename": "x"}, TABLES["files"], False)

        assert key == "3"
        assert snapshot.sort_value.kind == "number"

    def test_normalizer_applied_before_fingerprint(self):
        # Arrange
        config = TableConfig(
            logical_name="legacy",
            file_name="legacy.jsonl",
            table_name="legacy",
            normalizer=lambda row: {"id": row["id"], "title": row.get("name")},
        )

        # Act
        _, reshaped = prepare_row_snapshot({"id": "a", "name": "x"}, config, True)
        plain = TableConfig(logical_name="legacy", file_name="legacy.jsonl", table_name="legacy")
        _, native = prepare_row_snapshot({"id": "a", "title": "x"}, plain, True)

        # Assert
        assert reshaped.hash == native.hash

    def test_normalizer_can_drop_columns_with_undefined(self):
        config = TableConfig(
            logical_name="legacy",
            file_name="legacy.jsonl",
            table_name="legacy",
            normalizer=lambda row: {**row, "migrated_at": UNDEFINED},
        )

        _, exported = prepare_row_snapshot({"id": "a", "title": "x"}, config, True)
        _, imported = prepare_row_snapshot({"id": "a", "title": "x", "migrated_at": 5}, config, True)

        assert exported.hash == imported.hash
        assert "migrated_at" not in imported.normalized
