"""
Report generation and failure classification.

This submodule builds the single JSON report document for a run, maps the
run's mismatches to a status and exit code, and renders console output.
"""

from .classifier import ExitCode, RunOutcome, Status, classify, parse_fail_on
from .formatters import (
    diff_preview_lines,
    export_report_json,
    format_summary_line,
    guidance_messages,
)
from .generator import build_meta, format_timestamp, generate_report

__all__ = [
    'ExitCode',
    'RunOutcome',
    'Status',
    'classify',
    'parse_fail_on',
    'build_meta',
    'format_timestamp',
    'generate_report',
    'export_report_json',
    'diff_preview_lines',
    'format_summary_line',
    'guidance_messages',
]
