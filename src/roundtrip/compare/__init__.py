"""
Comparison logic for round-trip verification.

This submodule compares before/after data:
- Table snapshots (counts, table hashes, row-level detail)
- Attachment trees (counts, bytes, content hashes, sampled byte checks)
"""

from .attachments import (
    AttachmentDiffResult,
    AttachmentMismatch,
    AttachmentRecord,
    SampleMismatch,
    collect_attachments,
    diff_attachments,
    file_sha256,
    normalize_attachment_key,
    select_sample,
)
from .tables import (
    Comparison,
    RowMismatch,
    TableDiffResult,
    changed_keys,
    deep_equal,
    diff_tables,
)

__all__ = [
    'Comparison',
    'RowMismatch',
    'TableDiffResult',
    'diff_tables',
    'changed_keys',
    'deep_equal',
    'AttachmentRecord',
    'AttachmentMismatch',
    'SampleMismatch',
    'AttachmentDiffResult',
    'collect_attachments',
    'diff_attachments',
    'file_sha256',
    'normalize_attachment_key',
    'select_sample',
]
