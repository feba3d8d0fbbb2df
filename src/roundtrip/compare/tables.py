"""
Table diff engine.

Compares two TableSnapshots of the same logical table. Counts and table
hashes are always compared; when both snapshots carry per-row detail, rows
are matched by primary key into missing, extra, and mismatched lists.
"""

from dataclasses import dataclass, field
from typing import Any

from ..collect import TableSnapshot
from ..normalize import NormalizedObject, NormalizedValue, RowSnapshot, SortValue, ordering_key


@dataclass
class Comparison:
    """Before/after pair of a scalar (count, byte total, or hash)."""

    before: Any
    after: Any

    @property
    def ok(self) -> bool:
        return self.before == self.after

    def to_dict(self) -> dict[str, Any]:
        return {"before": self.before, "after": self.after, "ok": self.ok}


@dataclass
class RowMismatch:
    """A row present on both sides whose fingerprints differ."""

    id: str
    before_hash: str
    after_hash: str
    changed_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "before_hash": self.before_hash,
            "after_hash": self.after_hash,
            "changed_keys": list(self.changed_keys),
        }


@dataclass
class TableDiffResult:
    """Outcome of diffing one logical table."""

    counts: Comparison
    table_hash: Comparison
    missing_ids: list[str] = field(default_factory=list)
    extra_ids: list[str] = field(default_factory=list)
    mismatched: list[RowMismatch] = field(default_factory=list)
    detail: bool = False

    @property
    def has_row_drift(self) -> bool:
        return (
            not self.table_hash.ok
            or bool(self.missing_ids)
            or bool(self.extra_ids)
            or bool(self.mismatched)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": self.counts.to_dict(),
            "table_hash": self.table_hash.to_dict(),
            "row_diffs": {
                "missing_ids": list(self.missing_ids),
                "extra_ids": list(self.extra_ids),
                "mismatched": [m.to_dict() for m in self.mismatched],
            },
        }


def deep_equal(a: NormalizedValue | None, b: NormalizedValue | None) -> bool:
    """
    Structural equality over normalized values.

    Types must match exactly, so True never equals 1.
    """
    if type(a) is not type(b):
        return False
    if isinstance(a, list):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(deep_equal(a[k], b[k]) for k in a)
    return a == b


_ABSENT = object()


def changed_keys(before: NormalizedObject, after: NormalizedObject) -> list[str]:
    """Sorted top-level keys whose normalized values differ (or exist on one side only)."""
    changed = []
    for key in set(before) | set(after):
        left = before.get(key, _ABSENT)
        right = after.get(key, _ABSENT)
        if left is _ABSENT or right is _ABSENT or not deep_equal(left, right):
            changed.append(key)
    return sorted(changed)


def _sort_ids(keys: list[str], rows: dict[str, RowSnapshot]) -> list[str]:
    def sort_key(key: str) -> tuple:
        snapshot = rows.get(key)
        sort_value = snapshot.sort_value if snapshot else SortValue("string", key)
        return ordering_key(key, sort_value)

    return sorted(keys, key=sort_key)


def diff_tables(before: TableSnapshot, after: TableSnapshot) -> TableDiffResult:
    """
    Diff two snapshots of the same table.

    Args:
        before: Snapshot from the export bundle
        after: Snapshot from the live store

    Returns:
        TableDiffResult; row lists stay empty unless both sides carry rows.
        Missing/extra ids are ordered by the table's id type, mismatches by id.
    """
    result = TableDiffResult(
        counts=Comparison(before.count, after.count),
        table_hash=Comparison(before.table_hash, after.table_hash),
    )
    if before.rows is None or after.rows is None:
        return result

    result.detail = True
    missing = []
    mismatched = []
    for key, before_row in before.rows.items():
        after_row = after.rows.get(key)
        if after_row is None:
            missing.append(key)
            continue
        if before_row.hash != after_row.hash:
            keys = []
            if before_row.normalized is not None and after_row.normalized is not None:
                keys = changed_keys(before_row.normalized, after_row.normalized)
            mismatched.append(RowMismatch(key, before_row.hash, after_row.hash, keys))

    extra = [key for key in after.rows if key not in before.rows]

    result.missing_ids = _sort_ids(missing, before.rows)
    result.extra_ids = _sort_ids(extra, after.rows)
    result.mismatched = sorted(mismatched, key=lambda m: m.id)
    return result
