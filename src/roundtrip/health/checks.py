"""
Storage health checks against the live SQLite store.

Four independent checks; a failure (or error) in one never prevents the
others from running:
- quick_check: PRAGMA quick_check
- integrity_check: PRAGMA integrity_check(1)
- foreign_key_check: PRAGMA foreign_key_check
- storage_sanity: journal mode, page size, and WAL sidecar inspection
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.utils.tracing import trace_operation

from .wal import inspect_wal_file

logger = logging.getLogger(__name__)

EXPECTED_JOURNAL_MODE = "wal"
EXPECTED_PAGE_SIZE = 4096


@dataclass
class HealthCheckSummary:
    name: str
    ok: bool
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "ok": self.ok}
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass
class HealthReportSummary:
    checks: list[HealthCheckSummary] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(check.ok for check in self.checks)

    def first_failure(self) -> HealthCheckSummary | None:
        return next((check for check in self.checks if not check.ok), None)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "checks": [check.to_dict() for check in self.checks]}


def _pragma_ok(connection: sqlite3.Connection, name: str, statement: str) -> HealthCheckSummary:
    try:
        row = connection.execute(statement).fetchone()
    except sqlite3.Error as e:
        return HealthCheckSummary(name, False, str(e))
    result = "" if row is None or row[0] is None else str(row[0])
    ok = result == "" or result.lower() == "ok"
    return HealthCheckSummary(name, ok, None if ok else result)


def run_quick_check(connection: sqlite3.Connection) -> HealthCheckSummary:
    return _pragma_ok(connection, "quick_check", "PRAGMA quick_check")


def run_integrity_check(connection: sqlite3.Connection) -> HealthCheckSummary:
    return _pragma_ok(connection, "integrity_check", "PRAGMA integrity_check(1)")


def run_foreign_key_check(connection: sqlite3.Connection) -> HealthCheckSummary:
    """Count foreign-key violations across all tables."""
    try:
        violations = len(connection.execute("PRAGMA foreign_key_check").fetchall())
    except sqlite3.Error as e:
        return HealthCheckSummary("foreign_key_check", False, str(e))
    if violations:
        return HealthCheckSummary("foreign_key_check", False, f"{violations} violation(s)")
    return HealthCheckSummary("foreign_key_check", True)


def run_storage_sanity(
    connection: sqlite3.Connection,
    db_path: str | Path,
    strict: bool,
) -> HealthCheckSummary:
    """
    Verify durability mode, page size, and the WAL sidecar.

    Journal mode other than WAL and page size other than 4096 are warnings,
    recorded in the details, unless strict is set, in which case they fail
    the check. A malformed WAL file always fails.

    Args:
        connection: Read-only connection to the live store
        db_path: Path of the database file (the WAL lives beside it)
        strict: Treat configuration warnings as failures

    Returns:
        HealthCheckSummary named storage_sanity
    """
    details: list[str] = []
    warnings: list[str] = []
    ok = True

    try:
        row = connection.execute("PRAGMA journal_mode").fetchone()
        mode = row[0] if row else None
        if isinstance(mode, str):
            details.append(f"journal_mode={mode}")
            if mode.lower() != EXPECTED_JOURNAL_MODE:
                if strict:
                    ok = False
                else:
                    warnings.append(f"journal_mode={mode}")
        else:
            ok = False
            details.append("journal_mode unavailable")
    except sqlite3.Error as e:
        ok = False
        details.append(f"journal_mode error: {e}")

    page_size = None
    try:
        row = connection.execute("PRAGMA page_size").fetchone()
        size = row[0] if row else None
        if isinstance(size, int):
            page_size = size
            details.append(f"page_size={size}")
            if size != EXPECTED_PAGE_SIZE:
                if strict:
                    ok = False
                else:
                    warnings.append(f"page_size={size}")
        else:
            ok = False
            details.append("page_size unavailable")
    except sqlite3.Error as e:
        ok = False
        details.append(f"page_size error: {e}")

    if page_size is not None:
        wal = inspect_wal_file(db_path, page_size)
        if not wal.ok:
            ok = False
        details.append(wal.details)

    if warnings:
        details.append(f"warnings={','.join(warnings)}")

    return HealthCheckSummary("storage_sanity", ok, "; ".join(details))


def run_health_checks(
    connection: sqlite3.Connection,
    db_path: str | Path,
    strict: bool = False,
) -> HealthReportSummary:
    """
    Run all storage health checks.

    Returns:
        HealthReportSummary whose ok is True only if every check passed
    """
    with trace_operation("run_health_checks", db_path=str(db_path), strict=strict):
        summary = HealthReportSummary(
            checks=[
                run_quick_check(connection),
                run_integrity_check(connection),
                run_foreign_key_check(connection),
                run_storage_sanity(connection, db_path, strict),
            ]
        )

    for check in summary.checks:
        if check.ok:
            logger.debug(f"Health check {check.name}: ok ({check.details or ''})")
        else:
            logger.warning(f"Health check {check.name} failed: {check.details}")
    return summary
