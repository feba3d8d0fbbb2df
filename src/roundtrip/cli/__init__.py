"""
Command-line interface for round-trip verification.

Compares an export bundle ("before") against the live database it was
imported into ("after") and exits with a code describing the most severe
failing category.
"""

import logging
import sys

from src.utils.logging import setup_logging
from src.utils.tracing import initialize_tracing, shutdown_tracing

from ..report import ExitCode
from .commands import build_options, cmd_verify, print_outcome
from .parser import create_parser

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the roundtrip-verify CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file, json_format=args.log_json)
    initialize_tracing()

    try:
        exit_code = cmd_verify(args)
    except Exception as e:
        logger.error(f"Verification failed: {e}", exc_info=True)
        print(f"[roundtrip-verify] error: {e}", file=sys.stderr)
        exit_code = ExitCode.INTERNAL_ERROR
    finally:
        shutdown_tracing()

    sys.exit(exit_code)


__all__ = [
    'main',
    'build_options',
    'cmd_verify',
    'print_outcome',
    'create_parser',
]
