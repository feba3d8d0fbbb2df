"""
Run configuration for round-trip verification.

Holds the compiled-in defaults, the environment variable fallbacks used by
the CLI parser, and the resolved options object passed through a run.
"""

import os
import sys
from dataclasses import dataclass, field

REPORT_VERSION = 1
DEFAULT_SAMPLE_SIZE = 16
DEFAULT_WORKERS = 1
DEFAULT_OUT = "roundtrip-diff.json"
DEFAULT_DB_FILENAME = "arklowdun.sqlite3"
DIFF_PREVIEW_LIMIT = 5

# Failure categories, in the order they are listed in reports
CATEGORIES = ("counts", "rows", "attachments", "health")
DEFAULT_FAIL_ON = frozenset({"counts", "attachments", "health"})


def _env_int(name: str, default: int) -> int:
    """Read a non-negative integer from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def default_sample_size() -> int:
    return _env_int("ROUNDTRIP_SAMPLE_SIZE", DEFAULT_SAMPLE_SIZE)


def default_workers() -> int:
    return max(1, _env_int("ROUNDTRIP_WORKERS", DEFAULT_WORKERS))


def default_db_filename() -> str:
    return os.getenv("ROUNDTRIP_DB_FILENAME", DEFAULT_DB_FILENAME)


def default_case_fold() -> bool:
    """Attachment paths are case-folded by default on case-insensitive hosts."""
    return sys.platform == "win32"


@dataclass
class VerifyOptions:
    """
    Resolved options for one verification run.

    Attributes:
        before_dir: Export bundle root (contains data/ and attachments/)
        after_path: App-data directory or direct path to the database file
        tables: Logical table names to verify, in report order
        sample_size: Attachment byte-compare sample size
        out_path: Report output path
        fail_on: Failure categories that affect the exit code
        strict: Collect row detail up front and fail on storage warnings
        include_deleted: Include soft-deleted rows in comparison
        case_fold_paths: Case-fold attachment paths before comparing
        workers: Worker threads for table verification and attachment hashing
    """

    before_dir: str
    after_path: str
    tables: list[str]
    sample_size: int = DEFAULT_SAMPLE_SIZE
    out_path: str = DEFAULT_OUT
    fail_on: frozenset[str] = field(default_factory=lambda: DEFAULT_FAIL_ON)
    strict: bool = False
    include_deleted: bool = False
    case_fold_paths: bool = False
    workers: int = DEFAULT_WORKERS

    @property
    def rows_fatal(self) -> bool:
        """Row drift affects the exit code only in strict mode or when selected."""
        return self.strict or "rows" in self.fail_on

    def to_dict(self) -> dict:
        return {
            "tables": list(self.tables),
            "sample": self.sample_size,
            "strict": self.strict,
            "fail_on": sorted(self.fail_on),
            "include_deleted": self.include_deleted,
            "case_fold_paths": self.case_fold_paths,
            "workers": self.workers,
        }
