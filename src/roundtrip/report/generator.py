"""
Report document assembly.

One JSON document per run:
    {meta, health, tables, attachments, status}
"""

from datetime import UTC, datetime
from typing import Any

from ..compare import AttachmentDiffResult, TableDiffResult
from ..config import REPORT_VERSION, VerifyOptions
from ..health import HealthReportSummary
from .classifier import Status


def format_timestamp(timestamp: datetime) -> str:
    """ISO 8601 in UTC with a trailing Z."""
    return timestamp.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_meta(
    options: VerifyOptions,
    before_paths: dict[str, str],
    after_paths: dict[str, str],
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the report's run metadata block.

    Args:
        options: Resolved run options
        before_paths: export_dir, data_dir, attachments_dir of the bundle
        after_paths: app_data_dir, db_path, attachments_dir of the live store
        generated_at: Report time (default: now)
    """
    return {
        "version": REPORT_VERSION,
        "generated_at": format_timestamp(generated_at or datetime.now(UTC)),
        "before": before_paths["export_dir"],
        "before_data_dir": before_paths["data_dir"],
        "before_attachments_dir": before_paths["attachments_dir"],
        "after": after_paths["app_data_dir"],
        "after_db": after_paths["db_path"],
        "after_attachments_dir": after_paths["attachments_dir"],
        "options": options.to_dict(),
    }


def generate_report(
    meta: dict[str, Any],
    health: HealthReportSummary,
    tables: dict[str, TableDiffResult],
    attachments: AttachmentDiffResult,
    status: Status,
) -> dict[str, Any]:
    """Assemble the full report document; tables keep their run order."""
    return {
        "meta": meta,
        "health": health.to_dict(),
        "tables": {name: diff.to_dict() for name, diff in tables.items()},
        "attachments": attachments.to_dict(),
        "status": status.value,
    }
