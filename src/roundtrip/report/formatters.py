"""
Report export and console output.

Writes the JSON report and renders the one-line run summary plus the
per-category guidance lines printed when a run fails.
"""

import json
import logging
from pathlib import Path
from typing import Any

from ..compare import TableDiffResult
from ..config import DIFF_PREVIEW_LIMIT
from .classifier import RunOutcome, Status

logger = logging.getLogger(__name__)

PREFIX = "[roundtrip-verify]"


def export_report_json(report: dict[str, Any], output_path: str | Path) -> None:
    """
    Export report to JSON file, creating parent directories

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
        f.write("\n")


def _preview(ids: list[str], limit: int) -> str:
    suffix = "…" if len(ids) > limit else ""
    return ", ".join(ids[:limit]) + suffix


def diff_preview_lines(
    table: str,
    diff: TableDiffResult,
    limit: int = DIFF_PREVIEW_LIMIT,
) -> list[str]:
    """Short listing of the first few missing/extra/mismatched ids of a table."""
    lines = []
    if diff.missing_ids:
        lines.append(f"{PREFIX} {table}: missing {_preview(diff.missing_ids, limit)}")
    if diff.extra_ids:
        lines.append(f"{PREFIX} {table}: extra {_preview(diff.extra_ids, limit)}")
    if diff.mismatched:
        ids = [m.id for m in diff.mismatched]
        lines.append(f"{PREFIX} {table}: mismatched {_preview(ids, limit)}")
    return lines


def format_summary_line(status: Status, outcome: RunOutcome, out_path: str | Path) -> str:
    parts = []
    if outcome.count_failures:
        parts.append(f"counts: {', '.join(outcome.count_failures)}")
    if outcome.row_failures:
        parts.append(f"rows: {', '.join(outcome.row_failures)}")
    if outcome.attachments_mismatch:
        parts.append("attachments mismatch")
    if outcome.health_failed:
        parts.append("health check failed")
    summary = f" ({'; '.join(parts)})" if parts else ""
    return f"{PREFIX} status={status.value}{summary} -> {out_path}"


def guidance_messages(
    outcome: RunOutcome,
    out_path: str | Path,
    failing_health_check: str | None = None,
) -> list[str]:
    """
    One guidance line per failing category, naming the report section to inspect.

    Args:
        outcome: Categories that showed differences
        out_path: Report path
        failing_health_check: Name of the first failed health check, if any

    Returns:
        Guidance lines in classification precedence order
    """
    lines = []
    if outcome.health_failed:
        lines.append(
            f"{PREFIX} guidance: database health check failed "
            f"({failing_health_check or 'unknown'}) - review the health section in {out_path}"
        )
    if outcome.attachments_mismatch:
        lines.append(
            f"{PREFIX} guidance: attachment drift - inspect attachments.sha_mismatches "
            f"and attachments.sample_mismatches in {out_path}"
        )
    if outcome.count_failures:
        lines.append(
            f"{PREFIX} guidance: counts mismatch in {outcome.count_failures[0]} - "
            f"regenerate the export/import pair and compare tables.{outcome.count_failures[0]}.counts "
            f"in {out_path}"
        )
    if outcome.row_failures:
        lines.append(
            f"{PREFIX} guidance: row drift detected in {outcome.row_failures[0]} - "
            f"inspect tables.{outcome.row_failures[0]}.row_diffs in {out_path}"
        )
    return lines
