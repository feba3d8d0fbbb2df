"""
Compiled-in registry of the logical tables covered by verification.

Each entry maps a logical table to its export file (under data/) and its
live SQLite table, along with how rows are keyed, ordered, and filtered.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

RowReshaper = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True)
class TableConfig:
    """
    Static description of one logical table.

    Attributes:
        logical_name: Name used on the CLI and in the report
        file_name: Line-delimited snapshot file inside the export data/ dir
        table_name: Table name in the live store
        id_column: Primary-key column, required on every row
        id_type: "string" or "number"; drives id ordering
        order_by: Live-store ordering column (defaults to id_column)
        filter_deleted: Exclude soft-deleted rows unless the caller opts in
        exclude_columns: Volatile columns ignored during comparison
        normalizer: Optional per-row reshaping applied before normalization
    """

    logical_name: str
    file_name: str
    table_name: str
    id_column: str = "id"
    id_type: str = "string"
    order_by: str | None = None
    filter_deleted: bool = False
    exclude_columns: frozenset[str] = field(default_factory=frozenset)
    normalizer: RowReshaper | None = None

    def __post_init__(self):
        if self.id_type not in ("string", "number"):
            raise ValueError(
                f"id_type must be 'string' or 'number', got {self.id_type!r} "
                f"for table {self.logical_name}"
            )

    @property
    def sort_column(self) -> str:
        return self.order_by or self.id_column


TABLES: dict[str, TableConfig] = {
    "households": TableConfig(
        logical_name="households",
        file_name="households.jsonl",
        table_name="household",
        id_column="id",
        id_type="string",
        order_by="id",
        filter_deleted=True,
        exclude_columns=frozenset({"updated_at", "last_viewed_at"}),
    ),
    "events": TableConfig(
        logical_name="events",
        file_name="events.jsonl",
        table_name="events",
        id_column="id",
        id_type="string",
        order_by="id",
        filter_deleted=True,
        exclude_columns=frozenset({"updated_at", "last_viewed_at"}),
    ),
    "notes": TableConfig(
        logical_name="notes",
        file_name="notes.jsonl",
        table_name="notes",
        id_column="id",
        id_type="string",
        order_by="id",
        filter_deleted=True,
        exclude_columns=frozenset({"updated_at", "last_viewed_at"}),
    ),
    "files": TableConfig(
        logical_name="files",
        file_name="files.jsonl",
        table_name="files_index",
        id_column="id",
        id_type="number",
        order_by="id",
        exclude_columns=frozenset({"updated_at_utc", "last_viewed_at"}),
    ),
}


def resolve_tables(
    requested: str | None,
    registry: dict[str, TableConfig] | None = None,
) -> list[str]:
    """
    Resolve a --tables value into logical table names.

    Args:
        requested: Comma-separated names, "all", or None for every table
        registry: Table registry to resolve against (default: TABLES)

    Returns:
        List of logical table names in the order requested

    Raises:
        ValueError: If any requested table is not registered
    """
    registry = TABLES if registry is None else registry
    if requested is None or requested.strip() == "all":
        return list(registry)

    tables = [name.strip() for name in requested.split(",") if name.strip()]
    invalid = [name for name in tables if name not in registry]
    if invalid:
        raise ValueError(f"Unknown table(s) requested: {', '.join(invalid)}")
    if not tables:
        raise ValueError("No tables requested")
    return tables
