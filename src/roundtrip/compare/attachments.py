"""
Attachment tree collector and differ.

Walks the before/after attachment directories, hashes every regular file,
and compares the two trees by count, total bytes, and content hash. A
deterministic sample of shared paths is then byte-compared directly, which
catches storage corruption the hash comparison alone cannot vouch for.
"""

import hashlib
import logging
import os
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .tables import Comparison

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class AttachmentRecord:
    relative_path: str
    normalized_path: str
    size: int
    sha256: str


@dataclass
class AttachmentMismatch:
    """A path missing on one side or whose content hash differs."""

    path: str
    before_sha: str | None
    after_sha: str | None
    before_size: int | None = None
    after_size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "before_sha": self.before_sha,
            "after_sha": self.after_sha,
            "before_size": self.before_size,
            "after_size": self.after_size,
        }


@dataclass
class SampleMismatch:
    path: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "reason": self.reason}


@dataclass
class AttachmentDiffResult:
    counts: Comparison
    bytes: Comparison
    sha_mismatches: list[AttachmentMismatch] = field(default_factory=list)
    sample_verified: int = 0
    sample_mismatches: list[SampleMismatch] = field(default_factory=list)
    sampled_paths: list[str] = field(default_factory=list)

    @property
    def has_mismatch(self) -> bool:
        return (
            not self.counts.ok
            or not self.bytes.ok
            or bool(self.sha_mismatches)
            or bool(self.sample_mismatches)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": self.counts.to_dict(),
            "bytes": self.bytes.to_dict(),
            "sha_mismatches": [m.to_dict() for m in self.sha_mismatches],
            "sample_verified": self.sample_verified,
            "sample_mismatches": [m.to_dict() for m in self.sample_mismatches],
        }


def normalize_attachment_key(relative_path: str, case_fold: bool) -> str:
    """Forward-slash, NFC, optionally case-folded comparison key."""
    normalized = unicodedata.normalize("NFC", relative_path.replace(os.sep, "/"))
    return normalized.casefold() if case_fold else normalized


def file_sha256(path: str | Path) -> str:
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _walk_files(root: Path) -> list[str]:
    """Relative slash paths of every regular file under root, in sorted walk order."""
    found = []
    stack = [(root, "")]
    while stack:
        directory, relative = stack.pop()
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
        subdirs = []
        for entry in entries:
            child = f"{relative}/{entry.name}" if relative else entry.name
            if entry.is_dir(follow_symlinks=False):
                subdirs.append((Path(entry.path), child))
            elif entry.is_file(follow_symlinks=False):
                found.append(child)
        # Reverse so the stack pops subdirectories in name order
        stack.extend(reversed(subdirs))
    return found


def collect_attachments(
    root: str | Path,
    case_fold: bool = False,
    workers: int = 1,
) -> dict[str, AttachmentRecord]:
    """
    Hash every regular file under an attachments root.

    Args:
        root: Attachments directory; a missing root yields an empty tree
        case_fold: Case-fold comparison keys
        workers: Threads used for hashing

    Returns:
        Records keyed by normalized path. When two files normalize to the
        same key, the first one in walk order wins.
    """
    root = Path(root)
    if not root.is_dir():
        if root.exists():
            logger.warning(f"Attachments root is not a directory: {root}")
        return {}

    relative_paths = []
    seen = set()
    for relative in _walk_files(root):
        key = normalize_attachment_key(relative, case_fold)
        if key in seen:
            logger.warning(f"Attachment path collision, keeping first: {relative} -> {key}")
            continue
        seen.add(key)
        relative_paths.append((key, relative))

    def describe(item: tuple[str, str]) -> AttachmentRecord:
        key, relative = item
        absolute = root.joinpath(*relative.split("/"))
        return AttachmentRecord(
            relative_path=relative,
            normalized_path=key,
            size=absolute.stat().st_size,
            sha256=file_sha256(absolute),
        )

    if workers > 1 and len(relative_paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            records = list(executor.map(describe, relative_paths))
    else:
        records = [describe(item) for item in relative_paths]

    logger.debug(f"Collected {len(records)} attachments under {root}")
    return {record.normalized_path: record for record in records}


def select_sample(keys: list[str] | set[str], sample_size: int) -> list[str]:
    """
    Deterministically choose up to sample_size keys.

    Keys are ordered by the SHA-256 of the key itself, so the choice is stable
    across runs and independent of filesystem iteration order.
    """
    ranked = sorted(keys, key=lambda k: (hashlib.sha256(k.encode("utf-8")).hexdigest(), k))
    return ranked[: max(0, sample_size)]


def _compare_bytes(before_path: Path, after_path: Path) -> str | None:
    """Return a mismatch reason, or None when both files are byte-identical."""
    try:
        before_bytes = before_path.read_bytes()
        after_bytes = after_path.read_bytes()
    except OSError as e:
        return str(e)
    if before_bytes != after_bytes:
        return "byte mismatch"
    return None


def diff_attachments(
    before_root: str | Path,
    after_root: str | Path,
    sample_size: int,
    case_fold: bool = False,
    workers: int = 1,
) -> AttachmentDiffResult:
    """
    Compare two attachment trees.

    Args:
        before_root: Export bundle attachments/ directory
        after_root: Live app-data attachments/ directory
        sample_size: Number of shared paths to byte-compare
        case_fold: Case-fold paths before matching
        workers: Threads used for hashing

    Returns:
        AttachmentDiffResult with totals, hash mismatches, and sample outcome
    """
    before = collect_attachments(before_root, case_fold, workers)
    after = collect_attachments(after_root, case_fold, workers)

    result = AttachmentDiffResult(
        counts=Comparison(len(before), len(after)),
        bytes=Comparison(
            sum(r.size for r in before.values()),
            sum(r.size for r in after.values()),
        ),
    )

    for key in sorted(set(before) | set(after)):
        b = before.get(key)
        a = after.get(key)
        if b is None or a is None or b.sha256 != a.sha256:
            result.sha_mismatches.append(
                AttachmentMismatch(
                    path=(b or a).relative_path,
                    before_sha=b.sha256 if b else None,
                    after_sha=a.sha256 if a else None,
                    before_size=b.size if b else None,
                    after_size=a.size if a else None,
                )
            )

    shared = [key for key in before if key in after]
    sample = select_sample(shared, sample_size)
    before_root, after_root = Path(before_root), Path(after_root)
    for key in sample:
        b, a = before[key], after[key]
        reason = _compare_bytes(
            before_root.joinpath(*b.relative_path.split("/")),
            after_root.joinpath(*a.relative_path.split("/")),
        )
        if reason is not None:
            result.sample_mismatches.append(SampleMismatch(b.relative_path, reason))

    result.sample_verified = len(sample)
    result.sampled_paths = sample

    logger.info(
        f"Attachments: {len(before)} before / {len(after)} after, "
        f"{len(result.sha_mismatches)} hash mismatch(es), "
        f"{len(result.sample_mismatches)}/{len(sample)} sample mismatch(es)"
    )
    return result
