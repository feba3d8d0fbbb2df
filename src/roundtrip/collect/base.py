"""
Common snapshot model and collector contract.

Both collectors feed rows through the same normalize/fingerprint/fold
sequence, so equivalent logical content yields byte-identical table hashes
regardless of which source it was read from.
"""

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..normalize import RowSnapshot, ordering_key, prepare_row_snapshot
from ..tables import TableConfig


@dataclass
class TableSnapshot:
    """
    Aggregate view of one table from one source.

    Attributes:
        count: Number of rows collected
        table_hash: SHA-256 over row hashes folded in primary-key order
        rows: Per-row snapshots keyed by primary key (detail pass only)
    """

    count: int
    table_hash: str
    rows: dict[str, RowSnapshot] | None = None


def fold_table_hash(entries: Iterable[tuple[tuple, str]]) -> str:
    """
    Fold row hashes into a table digest in primary-key order.

    Args:
        entries: (ordering key, row hash) pairs in any order

    Returns:
        SHA-256 hex digest independent of the input order
    """
    hasher = hashlib.sha256()
    for _, row_hash in sorted(entries):
        hasher.update(row_hash.encode("ascii"))
        hasher.update(b"\n")
    return hasher.hexdigest()


def build_snapshot(
    records: Iterable[Mapping[str, Any]],
    config: TableConfig,
    want_row_detail: bool,
) -> TableSnapshot:
    """
    Turn a stream of raw records into a TableSnapshot.

    Only (ordering key, hash) pairs are retained unless row detail is
    requested, so the cheap pass stays small for large tables.
    """
    rows: dict[str, RowSnapshot] | None = {} if want_row_detail else None
    entries: list[tuple[tuple, str]] = []

    for record in records:
        key, snapshot = prepare_row_snapshot(record, config, want_row_detail)
        entries.append((ordering_key(key, snapshot.sort_value), snapshot.hash))
        if rows is not None:
            rows[key] = snapshot

    return TableSnapshot(count=len(entries), table_hash=fold_table_hash(entries), rows=rows)


class SnapshotCollector(ABC):
    """Produces a TableSnapshot for a configured table from one source."""

    source_name = "unknown"

    @abstractmethod
    def collect(self, config: TableConfig, want_row_detail: bool = False) -> TableSnapshot:
        """
        Collect a snapshot of a table.

        Args:
            config: Table to collect
            want_row_detail: Retain per-row snapshots for a detail diff

        Raises:
            CollectionError: If the source table/file is missing or malformed
        """
