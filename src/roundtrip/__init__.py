"""
Round-trip data integrity verification

This module checks that an export bundle (JSONL snapshots plus an
attachments tree) and the database it was imported into hold the same data.

Components:
- normalize: Row canonicalization and fingerprinting
- collect: Table snapshot collectors for JSONL and SQLite
- compare: Table and attachment diffing
- health: Database health checks and WAL inspection
- report: Report assembly and failure classification
- engine: Run orchestration
- cli: roundtrip-verify command

Usage:
    from src.roundtrip.config import VerifyOptions
    from src.roundtrip.engine import run_verification
"""

__version__ = "1.0.0"
__all__ = ["normalize", "collect", "compare", "health", "report", "engine", "cli"]
