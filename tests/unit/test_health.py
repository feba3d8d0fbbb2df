"""
Unit tests for storage health checks and WAL inspection.

WAL sidecars are crafted byte-for-byte next to a placeholder database path;
the PRAGMA-level checks run against a separate real database.
"""

import sqlite3
import struct

import pytest

from src.roundtrip.collect import open_readonly
from src.roundtrip.health import (
    HealthCheckSummary,
    HealthReportSummary,
    inspect_wal_file,
    run_foreign_key_check,
    run_health_checks,
    run_integrity_check,
    run_quick_check,
    run_storage_sanity,
    wal_path_for,
)

PAGE_SIZE = 4096
FRAME_SIZE = PAGE_SIZE + 24


def wal_bytes(body_size: int, magic: int = 0x377F0682) -> bytes:
    header = struct.pack(">IIII", magic, 3007000, PAGE_SIZE, 0) + b"\x00" * 16
    return header + b"\x00" * body_size


@pytest.fixture
def db_path(tmp_path):
    """Database path whose -wal sidecar tests write directly."""
    return tmp_path / "store.sqlite3"


@pytest.fixture
def connection(roundtrip_env):
    connection = open_readonly(roundtrip_env.db_path)
    yield connection
    connection.close()


class TestInspectWalFile:
    """Test inspect_wal_file"""

    def test_absent_wal_passes(self, db_path):
        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert result.ok
        assert result.details == "wal=absent"

    def test_empty_wal_passes(self, db_path):
        wal_path_for(db_path).write_bytes(b"")

        assert inspect_wal_file(db_path, PAGE_SIZE).details == "wal=empty"

    def test_page_aligned_wal_passes(self, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(2 * PAGE_SIZE))

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert result.ok
        assert result.details == f"wal={32 + 2 * PAGE_SIZE} bytes"

    def test_page_aligned_body_passes_with_alternate_magic(self, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(PAGE_SIZE, magic=0x377F0683))

        assert inspect_wal_file(db_path, PAGE_SIZE).ok

    def test_single_frame_body_is_misaligned(self, db_path):
        """A body of one page_size + 24 frame does not divide by the page size"""
        wal_path_for(db_path).write_bytes(wal_bytes(FRAME_SIZE))

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert not result.ok
        assert result.details == f"wal size misaligned ({32 + FRAME_SIZE} bytes, page_size={PAGE_SIZE})"

    def test_frame_count_reported_when_body_aligns_to_both(self, db_path):
        # 512 frames of 4120 bytes is also a whole number of 4096-byte pages
        wal_path_for(db_path).write_bytes(wal_bytes(512 * FRAME_SIZE))

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert result.ok
        assert result.details == f"wal={32 + 512 * FRAME_SIZE} bytes, frames=512"

    def test_truncated_by_one_byte_fails(self, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(2 * PAGE_SIZE)[:-1])

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert not result.ok
        assert "misaligned" in result.details

    def test_header_only_is_aligned(self, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(0))

        assert inspect_wal_file(db_path, PAGE_SIZE).ok

    def test_too_small(self, db_path):
        wal_path_for(db_path).write_bytes(b"\x37\x7f")

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert not result.ok
        assert result.details == "wal too small (2 bytes)"

    def test_bad_magic(self, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(FRAME_SIZE, magic=0x57414C00))

        result = inspect_wal_file(db_path, PAGE_SIZE)

        assert not result.ok
        assert result.details == "wal header mismatch"

    def test_directory_in_place_of_wal(self, db_path):
        wal_path_for(db_path).mkdir()

        assert not inspect_wal_file(db_path, PAGE_SIZE).ok


class TestPragmaChecks:
    """Test quick_check, integrity_check, and foreign_key_check"""

    def test_healthy_database(self, connection):
        assert run_quick_check(connection) == HealthCheckSummary("quick_check", True)
        assert run_integrity_check(connection) == HealthCheckSummary("integrity_check", True)
        assert run_foreign_key_check(connection) == HealthCheckSummary("foreign_key_check", True)

    def test_foreign_key_violations_counted(self, roundtrip_env):
        roundtrip_env.execute(
            "INSERT INTO notes (id, household_id, text) VALUES (?, ?, ?)",
            ("n-orphan", "hh-missing", "orphan"),
        )
        connection = open_readonly(roundtrip_env.db_path)
        try:
            result = run_foreign_key_check(connection)
        finally:
            connection.close()

        assert not result.ok
        assert result.details == "1 violation(s)"

    def test_errors_become_failed_checks(self):
        connection = sqlite3.connect(":memory:")
        connection.close()

        result = run_quick_check(connection)

        assert not result.ok
        assert result.details


class TestStorageSanity:
    """Test run_storage_sanity"""

    def test_rollback_journal_is_a_warning(self, connection, db_path):
        result = run_storage_sanity(connection, db_path, strict=False)

        assert result.ok
        assert "journal_mode=delete" in result.details
        assert "page_size=4096" in result.details
        assert "wal=absent" in result.details
        assert result.details.endswith("warnings=journal_mode=delete")

    def test_strict_turns_warnings_into_failure(self, connection, db_path):
        result = run_storage_sanity(connection, db_path, strict=True)

        assert not result.ok
        assert "warnings=" not in result.details

    def test_malformed_wal_fails_even_when_lenient(self, connection, db_path):
        wal_path_for(db_path).write_bytes(wal_bytes(FRAME_SIZE)[:-1])

        result = run_storage_sanity(connection, db_path, strict=False)

        assert not result.ok
        assert "misaligned" in result.details


class TestRunHealthChecks:
    """Test run_health_checks aggregation"""

    def test_all_four_checks_run(self, connection, roundtrip_env):
        summary = run_health_checks(connection, roundtrip_env.db_path)

        assert [c.name for c in summary.checks] == [
            "quick_check",
            "integrity_check",
            "foreign_key_check",
            "storage_sanity",
        ]
        assert summary.ok
        assert summary.first_failure() is None

    def test_summary_dict(self):
        summary = HealthReportSummary(
            checks=[
                HealthCheckSummary("quick_check", True),
                HealthCheckSummary("foreign_key_check", False, "2 violation(s)"),
            ]
        )

        assert summary.to_dict() == {
            "ok": False,
            "checks": [
                {"name": "quick_check", "ok": True},
                {"name": "foreign_key_check", "ok": False, "details": "2 violation(s)"},
            ],
        }
        assert summary.first_failure().name == "foreign_key_check"
