"""
Storage health checks for the live store, including WAL sidecar inspection.
"""

from .checks import (
    HealthCheckSummary,
    HealthReportSummary,
    run_foreign_key_check,
    run_health_checks,
    run_integrity_check,
    run_quick_check,
    run_storage_sanity,
)
from .wal import WAL_HEADER_SIZE, WAL_MAGIC_VALUES, WalInspection, inspect_wal_file, wal_path_for

__all__ = [
    'HealthCheckSummary',
    'HealthReportSummary',
    'run_health_checks',
    'run_quick_check',
    'run_integrity_check',
    'run_foreign_key_check',
    'run_storage_sanity',
    'WalInspection',
    'inspect_wal_file',
    'wal_path_for',
    'WAL_HEADER_SIZE',
    'WAL_MAGIC_VALUES',
]
