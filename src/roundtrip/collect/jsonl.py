"""
Snapshot collector over an export bundle's line-delimited data files.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from src.utils.tracing import trace_operation

from ..errors import CollectionError, MalformedRecordError
from ..tables import TableConfig
from .base import SnapshotCollector, TableSnapshot, build_snapshot

logger = logging.getLogger(__name__)


class JsonlSnapshotCollector(SnapshotCollector):
    """
    Reads <data_dir>/<file_name>, one JSON object per line.

    The file is streamed line by line; blank lines are skipped.
    """

    source_name = "jsonl"

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def path_for(self, config: TableConfig) -> Path:
        return self.data_dir / config.file_name

    def collect(self, config: TableConfig, want_row_detail: bool = False) -> TableSnapshot:
        path = self.path_for(config)
        if not path.is_file():
            raise CollectionError(
                config.logical_name, f"Data file missing for table: {path}"
            )

        with trace_operation(
            "collect_jsonl_table",
            table=config.logical_name,
            row_detail=want_row_detail,
        ):
            snapshot = build_snapshot(self._iter_records(path, config), config, want_row_detail)

        logger.debug(
            f"Collected {snapshot.count} rows from {path} "
            f"(detail={want_row_detail}, hash={snapshot.table_hash[:12]})"
        )
        return snapshot

    def _iter_records(self, path: Path, config: TableConfig) -> Iterator[dict[str, Any]]:
        with open(path, "rb") as f:
            for line_number, line in enumerate(f, start=1):
                try:
                    stripped = line.decode("utf-8").strip()
                except UnicodeDecodeError as e:
                    raise MalformedRecordError(
                        config.logical_name, str(path), line_number, f"invalid UTF-8: {e.reason}"
                    ) from e
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError as e:
                    raise MalformedRecordError(
                        config.logical_name, str(path), line_number, e.msg
                    ) from e
                if not isinstance(record, dict):
                    raise MalformedRecordError(
                        config.logical_name,
                        str(path),
                        line_number,
                        f"expected a JSON object, got {type(record).__name__}",
                    )
                yield record
