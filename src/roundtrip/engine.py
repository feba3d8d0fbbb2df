"""
Round-trip verification run orchestration.

Resolves the before/after data roots, verifies every configured table with
the two-tier strategy (aggregate pass first, row detail only when needed),
diffs attachments, runs storage health checks, classifies the outcome, and
assembles the report document.
"""

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.utils.logging import ContextLogger
from src.utils.tracing import add_span_attributes, add_span_event, trace_operation

from .collect import JsonlSnapshotCollector, SnapshotCollector, SqliteSnapshotCollector, open_readonly
from .compare import AttachmentDiffResult, TableDiffResult, diff_attachments, diff_tables
from .config import VerifyOptions, default_db_filename
from .errors import InputPathError
from .health import HealthReportSummary, run_health_checks
from .metrics import VerificationMetrics
from .parallel import ParallelTableVerifier
from .report import (
    RunOutcome,
    Status,
    build_meta,
    classify,
    diff_preview_lines,
    generate_report,
)
from .tables import TABLES, TableConfig

logger = logging.getLogger(__name__)


@dataclass
class TableVerification:
    diff: TableDiffResult
    escalated: bool
    duration_seconds: float


@dataclass
class RunResult:
    """Everything a caller needs after a run: the report and how to exit."""

    report: dict[str, Any]
    status: Status
    exit_code: int
    outcome: RunOutcome
    tables: dict[str, TableDiffResult] = field(default_factory=dict)
    attachments: AttachmentDiffResult | None = None
    health: HealthReportSummary | None = None


def resolve_before_paths(before_dir: str | Path) -> dict[str, str]:
    """
    Locate the export bundle's data/ and attachments/ directories.

    Raises:
        InputPathError: If the bundle root or its data/ directory is missing
    """
    export_dir = Path(before_dir).resolve()
    if not export_dir.is_dir():
        raise InputPathError(f"Before export directory not found: {export_dir}")
    data_dir = export_dir / "data"
    if not data_dir.is_dir():
        raise InputPathError(f"Export data directory (data/) not found: {data_dir}")
    return {
        "export_dir": str(export_dir),
        "data_dir": str(data_dir),
        "attachments_dir": str(export_dir / "attachments"),
    }


def resolve_after_paths(after_path: str | Path, db_filename: str | None = None) -> dict[str, str]:
    """
    Locate the live database file and attachments/ directory.

    Args:
        after_path: App-data directory or direct path to the database file
        db_filename: Database file name inside an app-data directory

    Raises:
        InputPathError: If the path or the database file does not exist
    """
    resolved = Path(after_path).resolve()
    if resolved.is_dir():
        app_data_dir = resolved
        db_path = app_data_dir / (db_filename or default_db_filename())
    elif resolved.exists():
        app_data_dir = resolved.parent
        db_path = resolved
    else:
        raise InputPathError(f"After path not found: {resolved}")

    if not db_path.is_file():
        raise InputPathError(f"Imported database file not found: {db_path}")
    return {
        "app_data_dir": str(app_data_dir),
        "db_path": str(db_path),
        "attachments_dir": str(app_data_dir / "attachments"),
    }


def verify_table(
    config: TableConfig,
    before: SnapshotCollector,
    after: SnapshotCollector,
    initial_detail: bool = False,
    metrics: VerificationMetrics | None = None,
) -> TableVerification:
    """
    Verify one table with the two-tier strategy.

    The cheap pass collects counts and table hashes only. If they disagree
    (and row detail was not already collected) both sides are re-collected
    with per-row snapshots so missing, extra, and changed rows can be named.

    Args:
        config: Table to verify
        before: Export-side collector
        after: Live-store collector
        initial_detail: Collect row detail on the first pass
        metrics: Optional metrics sink

    Returns:
        TableVerification with the diff and whether a detail pass ran
    """
    log = ContextLogger(__name__, table_name=config.logical_name)
    start = time.monotonic()

    with trace_operation("verify_table", table=config.logical_name, initial_detail=initial_detail):
        before_snapshot = before.collect(config, initial_detail)
        after_snapshot = after.collect(config, initial_detail)
        diff = diff_tables(before_snapshot, after_snapshot)

        escalated = not initial_detail and (not diff.counts.ok or not diff.table_hash.ok)
        if escalated:
            log.info(
                "Aggregate mismatch, collecting row detail",
                before_count=diff.counts.before,
                after_count=diff.counts.after,
            )
            add_span_event("detail_pass_started")
            before_snapshot = before.collect(config, True)
            after_snapshot = after.collect(config, True)
            diff = diff_tables(before_snapshot, after_snapshot)

        add_span_attributes(
            escalated=escalated,
            before_count=diff.counts.before,
            after_count=diff.counts.after,
        )

    duration = time.monotonic() - start
    matched = diff.counts.ok and diff.table_hash.ok
    if matched:
        log.info("Table matches", rows=diff.counts.before)
    else:
        log.warning(
            "Table differs",
            missing=len(diff.missing_ids),
            extra=len(diff.extra_ids),
            mismatched=len(diff.mismatched),
        )

    if metrics is not None:
        metrics.record_table(
            config.logical_name,
            matched,
            duration,
            before_snapshot.count,
            after_snapshot.count,
            escalated,
        )
    return TableVerification(diff=diff, escalated=escalated, duration_seconds=duration)


def _verify_table_with_own_connection(
    table: str,
    data_dir: str,
    db_path: str,
    include_deleted: bool,
    initial_detail: bool,
    metrics: VerificationMetrics | None,
) -> TableVerification:
    connection = open_readonly(db_path)
    try:
        return verify_table(
            TABLES[table],
            JsonlSnapshotCollector(data_dir),
            SqliteSnapshotCollector(connection, include_deleted),
            initial_detail,
            metrics,
        )
    finally:
        connection.close()


def _verify_tables(
    options: VerifyOptions,
    before_paths: dict[str, str],
    after_paths: dict[str, str],
    metrics: VerificationMetrics | None,
) -> dict[str, TableVerification]:
    initial_detail = options.rows_fatal

    if options.workers > 1 and len(options.tables) > 1:
        logger.info(f"Verifying {len(options.tables)} tables with {options.workers} workers")
        return ParallelTableVerifier(max_workers=options.workers).verify_tables(
            options.tables,
            _verify_table_with_own_connection,
            data_dir=before_paths["data_dir"],
            db_path=after_paths["db_path"],
            include_deleted=options.include_deleted,
            initial_detail=initial_detail,
            metrics=metrics,
        )

    results = {}
    connection = open_readonly(after_paths["db_path"])
    try:
        before = JsonlSnapshotCollector(before_paths["data_dir"])
        after = SqliteSnapshotCollector(connection, options.include_deleted)
        for table in options.tables:
            logger.info(f"Verifying table: {table}")
            results[table] = verify_table(TABLES[table], before, after, initial_detail, metrics)
    finally:
        connection.close()
    return results


def _run_health(db_path: str, strict: bool) -> HealthReportSummary:
    connection: sqlite3.Connection = open_readonly(db_path)
    try:
        return run_health_checks(connection, db_path, strict)
    finally:
        connection.close()


def run_verification(
    options: VerifyOptions,
    metrics: VerificationMetrics | None = None,
) -> RunResult:
    """
    Execute a full verification run.

    Args:
        options: Resolved run options
        metrics: Optional metrics sink

    Returns:
        RunResult holding the report document, status, and exit code

    Raises:
        InputPathError: If an input root is missing
        CollectionError: If a table cannot be collected
    """
    before_paths = resolve_before_paths(options.before_dir)
    after_paths = resolve_after_paths(options.after_path)
    logger.info(
        f"Verifying {before_paths['export_dir']} against {after_paths['db_path']} "
        f"(tables: {', '.join(options.tables)})"
    )

    verifications = _verify_tables(options, before_paths, after_paths, metrics)
    tables = {name: verification.diff for name, verification in verifications.items()}

    outcome = RunOutcome()
    for name, diff in tables.items():
        if not diff.counts.ok:
            outcome.count_failures.append(name)
        if diff.has_row_drift:
            outcome.row_failures.append(name)
            for line in diff_preview_lines(name, diff):
                logger.warning(line)

    with trace_operation("diff_attachments", sample=options.sample_size):
        attachments = diff_attachments(
            before_paths["attachments_dir"],
            after_paths["attachments_dir"],
            options.sample_size,
            options.case_fold_paths,
            options.workers,
        )
    outcome.attachments_mismatch = attachments.has_mismatch

    health = _run_health(after_paths["db_path"], options.strict)
    outcome.health_failed = not health.ok

    status, exit_code = classify(outcome, options.fail_on, options.rows_fatal)

    if metrics is not None:
        metrics.record_attachments(
            attachments.counts.before,
            attachments.counts.after,
            attachments.bytes.before,
            attachments.bytes.after,
            len(attachments.sample_mismatches),
        )
        for check in health.checks:
            if not check.ok:
                metrics.record_health_failure(check.name)
        metrics.record_exit_code(exit_code)

    report = generate_report(
        build_meta(options, before_paths, after_paths),
        health,
        tables,
        attachments,
        status,
    )
    return RunResult(
        report=report,
        status=status,
        exit_code=exit_code,
        outcome=outcome,
        tables=tables,
        attachments=attachments,
        health=health,
    )
