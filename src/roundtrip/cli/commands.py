"""
CLI command implementation.

Turns parsed arguments into VerifyOptions, runs the verification, writes the
report (and optional metrics textfile), and prints the summary and guidance
lines to stdout.
"""

import argparse
import logging

from ..config import VerifyOptions
from ..engine import RunResult, run_verification
from ..metrics import VerificationMetrics
from ..report import export_report_json, format_summary_line, guidance_messages, parse_fail_on
from ..tables import resolve_tables

logger = logging.getLogger(__name__)


def build_options(args: argparse.Namespace) -> VerifyOptions:
    """
    Resolve parsed arguments into run options

    Args:
        args: Parsed command-line arguments

    Returns:
        VerifyOptions for the run

    Raises:
        ValueError: If --tables or --fail-on names an unknown value
    """
    return VerifyOptions(
        before_dir=args.before,
        after_path=args.after,
        tables=resolve_tables(args.tables),
        sample_size=args.sample,
        out_path=args.out,
        fail_on=parse_fail_on(args.fail_on),
        strict=args.strict,
        include_deleted=args.include_deleted,
        case_fold_paths=args.case_fold_paths,
        workers=args.workers,
    )


def print_outcome(result: RunResult, out_path: str) -> None:
    """Print the summary line followed by one guidance line per failing category."""
    print(format_summary_line(result.status, result.outcome, out_path))

    failing_check = None
    if result.health is not None:
        first_failure = result.health.first_failure()
        failing_check = first_failure.name if first_failure else None

    for line in guidance_messages(result.outcome, out_path, failing_check):
        print(line)


def cmd_verify(args: argparse.Namespace) -> int:
    """
    Run a verification and report it

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    options = build_options(args)
    metrics = VerificationMetrics() if args.metrics_file else None

    logger.info(f"Starting verification of {len(options.tables)} table(s)")
    result = run_verification(options, metrics)

    export_report_json(result.report, options.out_path)
    logger.info(f"Report saved to {options.out_path}")

    if metrics is not None:
        metrics.write(args.metrics_file)

    print_outcome(result, options.out_path)
    return result.exit_code
