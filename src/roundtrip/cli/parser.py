"""
Command-line argument parser configuration.

Defines the roundtrip-verify options. Defaults for sample size, worker count
and logging fall back to environment variables.
"""

import argparse

from src.utils.logging import env_log_settings

from ..config import DEFAULT_OUT, default_case_fold, default_sample_size, default_workers


def non_negative_int(value: str) -> int:
    """argparse type for integers >= 0."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return number


def positive_int(value: str) -> int:
    number = non_negative_int(value)
    if number == 0:
        raise argparse.ArgumentTypeError("expected an integer >= 1, got 0")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="roundtrip-verify",
        description=(
            "Verify that an export bundle and the database it was imported into "
            "hold the same data"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Verify every table, attachments, and database health
  roundtrip-verify --before ./export-2024-05-01 --after ~/.local/share/arklowdun

  # Only events and notes, and fail on row drift too
  roundtrip-verify --before ./export --after ./app.sqlite3 --tables events,notes --fail-on any

  # Strict mode: row detail up front, storage warnings are failures
  roundtrip-verify --before ./export --after ./appdata --strict --out reports/diff.json

  # Parallel table verification with Prometheus textfile output
  roundtrip-verify --before ./export --after ./appdata --workers 4 --metrics-file verify.prom

Exit codes:
  0   all selected categories match
  10  row counts differ
  11  row contents differ
  12  attachments differ
  13  database health check failed
  99  unexpected error
        """,
    )

    parser.add_argument(
        '--before',
        required=True,
        help='Export bundle directory (contains data/ and attachments/)'
    )
    parser.add_argument(
        '--after',
        required=True,
        help='App-data directory holding the database, or a direct database file path'
    )
    parser.add_argument(
        '--tables',
        default='all',
        help='Comma-separated list of tables to verify, or "all" (default: all)'
    )
    parser.add_argument(
        '--sample',
        type=non_negative_int,
        default=default_sample_size(),
        help='Number of attachments to byte-compare (default: ROUNDTRIP_SAMPLE_SIZE or 16)'
    )
    parser.add_argument(
        '--case-fold-paths',
        action=argparse.BooleanOptionalAction,
        default=default_case_fold(),
        help='Case-fold attachment paths before comparing (default: on for Windows hosts)'
    )
    parser.add_argument(
        '--out',
        default=DEFAULT_OUT,
        help=f'Report output path (default: {DEFAULT_OUT})'
    )
    parser.add_argument(
        '--fail-on',
        help='Comma-separated failure categories (counts, rows, attachments, health) '
             'or "any" (default: counts,attachments,health)'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Collect row detail up front, fail on row drift and storage warnings'
    )
    parser.add_argument(
        '--include-deleted',
        action='store_true',
        help='Include soft-deleted rows from the database'
    )
    parser.add_argument(
        '--workers',
        type=positive_int,
        default=default_workers(),
        help='Worker threads for table verification and attachment hashing '
             '(default: ROUNDTRIP_WORKERS or 1)'
    )
    log_defaults = env_log_settings()
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=log_defaults['level'],
        help='Logging level (default: ROUNDTRIP_LOG_LEVEL or WARNING)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=log_defaults['json_format'],
        help='Emit logs as JSON lines on stderr (default: ROUNDTRIP_LOG_JSON)'
    )
    parser.add_argument(
        '--log-file',
        default=log_defaults['log_file'],
        help='Also write logs to this file (default: ROUNDTRIP_LOG_FILE)'
    )
    parser.add_argument(
        '--metrics-file',
        help='Write Prometheus metrics in text exposition format to this path'
    )

    return parser
