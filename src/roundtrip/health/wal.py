"""
Byte-level inspection of the SQLite write-ahead-log sidecar file.

The WAL file (<database>-wal) starts with a 32-byte header whose first four
bytes are a big-endian magic number (0x377f0682 or 0x377f0683, the low bit
selecting checksum byte order). An absent or empty WAL means no pending
writes. Anything else must carry the magic and a body that aligns to the
page size.
"""

import logging
import os
import struct
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

WAL_HEADER_SIZE = 32
WAL_FRAME_HEADER_SIZE = 24
WAL_MAGIC_VALUES = (0x377F0682, 0x377F0683)


@dataclass
class WalInspection:
    ok: bool
    details: str


def wal_path_for(db_path: str | Path) -> Path:
    return Path(f"{db_path}-wal")


def _frame_count(body_size: int, page_size: int) -> int | None:
    frame_size = page_size + WAL_FRAME_HEADER_SIZE
    if body_size and body_size % frame_size == 0:
        return body_size // frame_size
    return None


def inspect_wal_file(db_path: str | Path, page_size: int) -> WalInspection:
    """
    Check the WAL sidecar of a database file.

    Args:
        db_path: Path of the primary database file
        page_size: Database page size from PRAGMA page_size

    Returns:
        WalInspection with ok flag and a one-line detail string
    """
    wal_path = wal_path_for(db_path)
    try:
        stat = os.stat(wal_path)
    except FileNotFoundError:
        return WalInspection(True, "wal=absent")
    except OSError as e:
        return WalInspection(False, f"wal stat error: {e}")

    if not wal_path.is_file():
        return WalInspection(False, "wal is not a regular file")

    size = stat.st_size
    if size == 0:
        return WalInspection(True, "wal=empty")
    if size < WAL_HEADER_SIZE:
        return WalInspection(False, f"wal too small ({size} bytes)")

    try:
        with open(wal_path, "rb") as f:
            header = f.read(WAL_HEADER_SIZE)
    except OSError as e:
        return WalInspection(False, f"wal read error: {e}")

    (magic,) = struct.unpack(">I", header[:4])
    if magic not in WAL_MAGIC_VALUES:
        return WalInspection(False, "wal header mismatch")

    body_size = size - WAL_HEADER_SIZE
    if page_size <= 0 or body_size % page_size != 0:
        return WalInspection(
            False, f"wal size misaligned ({size} bytes, page_size={page_size})"
        )

    frames = _frame_count(body_size, page_size)
    if frames is None:
        return WalInspection(True, f"wal={size} bytes")
    return WalInspection(True, f"wal={size} bytes, frames={frames}")
