"""
Row normalization and fingerprinting.

Canonicalizes a record's field values into a representation-independent form
so that a row read from a JSONL export and the same row read from SQLite
produce identical fingerprints:

- strings are NFC-normalized and trimmed
- finite numbers pass through (integral floats collapse to int);
  non-finite numbers become their string form
- binary payloads become base64 text, dates become ISO 8601 strings
- mappings are rebuilt with sorted string keys, lists keep their order

The fingerprint is the SHA-256 of a stable JSON serialization of the
normalized value.
"""

import base64
import hashlib
import json
import math
import unicodedata
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, NamedTuple

from .errors import CollectionError, MissingPrimaryKeyError
from .tables import TableConfig

NormalizedValue = None | bool | int | float | str | list | dict
NormalizedObject = dict[str, NormalizedValue]


class _Undefined:
    """
    Marker for keys that should be dropped rather than rendered as null.

    A TableConfig.normalizer can map a column to UNDEFINED so that a field
    present on only one side (e.g. a column added by a later schema) is left
    out of the fingerprint instead of comparing as null.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class SortValue(NamedTuple):
    """Primary-key ordering value: kind is "number" or "string"."""

    kind: str
    value: Any


class RowSnapshot(NamedTuple):
    """Fingerprint of one row; normalized payload kept only on detail passes."""

    hash: str
    sort_value: SortValue
    normalized: NormalizedObject | None = None


def normalize_string(value: str) -> str:
    return unicodedata.normalize("NFC", value).strip()


def _normalize_number(value: float) -> int | float | str:
    if not math.isfinite(value):
        return normalize_string(str(value))
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def normalize_value(value: Any) -> NormalizedValue:
    """
    Normalize a single field value.

    Args:
        value: Raw value from JSON parsing or a SQLite row

    Returns:
        The canonical NormalizedValue for the input
    """
    if value is None:
        return None
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return normalize_string(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _normalize_number(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return normalize_string(str(value))
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (datetime, date, time)):
        return normalize_string(value.isoformat())
    if isinstance(value, Mapping):
        return _normalize_mapping(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return normalize_string(str(value))


def _normalize_mapping(value: Mapping) -> NormalizedObject:
    normalized: NormalizedObject = {}
    for key in sorted(value, key=str):
        item = value[key]
        if item is UNDEFINED:
            continue
        normalized[str(key)] = normalize_value(item)
    return normalized


def normalize_row(row: Mapping[str, Any], exclude: Iterable[str] = ()) -> NormalizedObject:
    """
    Normalize a whole record, dropping excluded (volatile) columns.

    Args:
        row: Raw record keyed by column name
        exclude: Column names ignored for comparison

    Returns:
        Key-sorted normalized record
    """
    excluded = set(exclude)
    return _normalize_mapping({k: v for k, v in row.items() if k not in excluded})


def stable_serialize(value: NormalizedValue) -> str:
    """Serialize with sorted keys and no insignificant whitespace."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def fingerprint(normalized: NormalizedValue) -> str:
    """SHA-256 hex digest of the stable serialization.

    Lone surrogates (legal in JSON text) are encoded as-is rather than rejected.
    """
    return hashlib.sha256(stable_serialize(normalized).encode("utf-8", "surrogatepass")).hexdigest()


def id_key(value: Any) -> str:
    """String form of a primary-key value used to match rows across sources."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_sort_value(raw: Any, id_type: str, table: str) -> SortValue:
    """
    Derive the ordering value for a primary key.

    Raises:
        CollectionError: If a numeric id is not a finite number
    """
    if id_type == "number":
        try:
            number = float(raw) if not isinstance(raw, (int, float)) else raw
        except (TypeError, ValueError):
            number = math.nan
        if isinstance(number, bool) or not math.isfinite(number):
            raise CollectionError(table, f"Expected numeric identifier, received {raw!r}")
        return SortValue("number", number)
    return SortValue("string", str(raw))


def ordering_key(key: str, sort_value: SortValue) -> tuple:
    """Sort key: numeric ids by value, string ids by code point, raw key as tie-break."""
    if sort_value.kind == "number":
        return (0, sort_value.value, key)
    return (1, sort_value.value, key)


def prepare_row_snapshot(
    row: Mapping[str, Any],
    config: TableConfig,
    include_normalized: bool,
) -> tuple[str, RowSnapshot]:
    """
    Validate, reshape, normalize, and fingerprint one row.

    Args:
        row: Raw record
        config: Table the record belongs to
        include_normalized: Keep the normalized payload for field-level diffs

    Returns:
        Tuple of (primary key string, RowSnapshot)

    Raises:
        MissingPrimaryKeyError: If the id column is absent or null
    """
    id_value = row.get(config.id_column)
    if id_value is None:
        raise MissingPrimaryKeyError(config.logical_name, config.id_column)

    key = id_key(id_value)
    sort_value = to_sort_value(id_value, config.id_type, config.logical_name)
    base_row = config.normalizer(dict(row)) if config.normalizer else row
    normalized = normalize_row(base_row, config.exclude_columns)
    return key, RowSnapshot(
        hash=fingerprint(normalized),
        sort_value=sort_value,
        normalized=normalized if include_normalized else None,
    )
