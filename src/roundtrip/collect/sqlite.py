"""
Snapshot collector over the live SQLite store.
"""

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from src.utils.tracing import trace_operation

from ..errors import CollectionError
from ..tables import TableConfig
from .base import SnapshotCollector, TableSnapshot, build_snapshot

logger = logging.getLogger(__name__)

FETCH_SIZE = 1000


def quote_identifier(name: str) -> str:
    """
    Quote a SQLite identifier.

    Raises:
        ValueError: If the identifier is empty or contains a NUL byte
    """
    if not name or "\x00" in name:
        raise ValueError(f"Invalid identifier: {name!r}")
    return '"' + name.replace('"', '""') + '"'


def open_readonly(db_path: str | Path) -> sqlite3.Connection:
    """
    Open a SQLite database read-only.

    The URI form guarantees no writes are issued and no file is created.
    """
    uri = f"{Path(db_path).resolve().as_uri()}?mode=ro"
    connection = sqlite3.connect(uri, uri=True, check_same_thread=False)
    connection.row_factory = sqlite3.Row
    return connection


def build_select(config: TableConfig, include_deleted: bool) -> str:
    where = ""
    if config.filter_deleted and not include_deleted:
        where = " WHERE deleted_at IS NULL"
    return (
        f"SELECT * FROM {quote_identifier(config.table_name)}{where} "
        f"ORDER BY {quote_identifier(config.sort_column)}"
    )


class SqliteSnapshotCollector(SnapshotCollector):
    """
    Scans a live store table in configured order.

    Soft-deleted rows (deleted_at IS NOT NULL) are excluded for tables that
    filter deletions, unless include_deleted is set.
    """

    source_name = "sqlite"

    def __init__(self, connection: sqlite3.Connection, include_deleted: bool = False):
        self.connection = connection
        self.include_deleted = include_deleted

    def collect(self, config: TableConfig, want_row_detail: bool = False) -> TableSnapshot:
        if not self._table_exists(config.table_name):
            raise CollectionError(
                config.logical_name, f"Table '{config.table_name}' not found in live store"
            )

        query = build_select(config, self.include_deleted)
        with trace_operation(
            "collect_sqlite_table",
            table=config.logical_name,
            row_detail=want_row_detail,
        ):
            try:
                snapshot = build_snapshot(self._iter_records(query), config, want_row_detail)
            except sqlite3.Error as e:
                raise CollectionError(
                    config.logical_name, f"Query failed on '{config.table_name}': {e}"
                ) from e

        logger.debug(
            f"Collected {snapshot.count} rows from {config.table_name} "
            f"(detail={want_row_detail}, hash={snapshot.table_hash[:12]})"
        )
        return snapshot

    def _table_exists(self, table_name: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
            (table_name,),
        ).fetchone()
        return row is not None

    def _iter_records(self, query: str) -> Iterator[dict[str, Any]]:
        cursor = self.connection.execute(query)
        try:
            columns = [desc[0] for desc in cursor.description]
            while True:
                batch = cursor.fetchmany(FETCH_SIZE)
                if not batch:
                    break
                for row in batch:
                    yield dict(zip(columns, row))
        finally:
            cursor.close()
