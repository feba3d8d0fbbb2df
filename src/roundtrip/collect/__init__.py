"""
Table snapshot collectors.

Two interchangeable sources produce the same TableSnapshot shape:
- JsonlSnapshotCollector: export bundle data/<table>.jsonl files
- SqliteSnapshotCollector: the live application database
"""

from .base import SnapshotCollector, TableSnapshot, build_snapshot, fold_table_hash
from .jsonl import JsonlSnapshotCollector
from .sqlite import SqliteSnapshotCollector, build_select, open_readonly, quote_identifier

__all__ = [
    'SnapshotCollector',
    'TableSnapshot',
    'JsonlSnapshotCollector',
    'SqliteSnapshotCollector',
    'build_snapshot',
    'fold_table_hash',
    'build_select',
    'open_readonly',
    'quote_identifier',
]
