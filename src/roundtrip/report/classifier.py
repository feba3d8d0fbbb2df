"""
Failure classification for verification runs.

Maps the mismatch categories found in a run to a single status and process
exit code. When several categories fail at once, precedence is
health > attachments > counts > rows. Only categories selected by the
caller's fail-on policy can fail a run; the rest are informational.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..config import CATEGORIES, DEFAULT_FAIL_ON


class Status(str, Enum):
    PASS = "PASS"
    FAIL_HEALTH = "FAIL_HEALTH"
    FAIL_ATTACHMENTS = "FAIL_ATTACHMENTS"
    FAIL_COUNTS = "FAIL_COUNTS"
    FAIL_ROWS = "FAIL_ROWS"


class ExitCode:
    """Process exit codes."""

    SUCCESS = 0
    COUNTS = 10
    ROWS = 11
    ATTACHMENTS = 12
    HEALTH = 13
    INTERNAL_ERROR = 99


@dataclass
class RunOutcome:
    """
    Which categories showed differences, independent of policy.

    Attributes:
        count_failures: Tables whose row counts differ
        row_failures: Tables with row-level drift
        attachments_mismatch: Attachment trees differ
        health_failed: Any health check failed
    """

    count_failures: list[str] = field(default_factory=list)
    row_failures: list[str] = field(default_factory=list)
    attachments_mismatch: bool = False
    health_failed: bool = False


def parse_fail_on(value: str | None) -> frozenset[str]:
    """
    Parse a --fail-on value.

    Args:
        value: Comma-separated categories, "any", or None for the default

    Returns:
        Frozen set of selected categories

    Raises:
        ValueError: If a category is unknown or none were given
    """
    if value is None:
        return DEFAULT_FAIL_ON

    normalized = value.strip().lower()
    if normalized == "any":
        return frozenset(CATEGORIES)

    selected = set()
    for part in normalized.split(","):
        key = part.strip()
        if not key:
            continue
        if key not in CATEGORIES:
            raise ValueError(f"Unknown --fail-on category: {key}")
        selected.add(key)

    if not selected:
        raise ValueError("No valid --fail-on categories provided")
    return frozenset(selected)


def classify(
    outcome: RunOutcome,
    fail_on: frozenset[str],
    rows_fatal: bool | None = None,
) -> tuple[Status, int]:
    """
    Pick the run status and exit code.

    Args:
        outcome: Categories that showed differences
        fail_on: Categories that affect the exit code
        rows_fatal: Override for whether row drift is fatal; defaults to
            "rows" being in fail_on (strict mode passes True)

    Returns:
        Tuple of (Status, exit code)
    """
    if rows_fatal is None:
        rows_fatal = "rows" in fail_on

    if outcome.health_failed and "health" in fail_on:
        return Status.FAIL_HEALTH, ExitCode.HEALTH
    if outcome.attachments_mismatch and "attachments" in fail_on:
        return Status.FAIL_ATTACHMENTS, ExitCode.ATTACHMENTS
    if outcome.count_failures and "counts" in fail_on:
        return Status.FAIL_COUNTS, ExitCode.COUNTS
    if outcome.row_failures and rows_fatal:
        return Status.FAIL_ROWS, ExitCode.ROWS
    return Status.PASS, ExitCode.SUCCESS
