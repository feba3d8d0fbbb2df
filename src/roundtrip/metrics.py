"""
Prometheus metrics for verification runs.

Tracks per-table verification outcomes, detail-pass escalations, attachment
totals, and health check failures. Each run owns its registry; the CLI can
dump it in the Prometheus text exposition format for a node-exporter
textfile collector.
"""

import logging
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile

logger = logging.getLogger(__name__)


class VerificationMetrics:
    """
    Metrics for round-trip verification

    Tracks table verification, attachments, and storage health.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize verification metrics

        Args:
            registry: Prometheus registry (default: a fresh per-run registry)
        """
        self.registry = registry if registry is not None else CollectorRegistry()

        self.tables_verified_total = Counter(
            "roundtrip_tables_verified_total",
            "Total number of tables verified",
            ["table_name", "outcome"],
            registry=self.registry,
        )

        self.table_duration_seconds = Histogram(
            "roundtrip_table_duration_seconds",
            "Duration of table verification in seconds",
            ["table_name"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300),
            registry=self.registry,
        )

        self.rows_compared_total = Counter(
            "roundtrip_rows_compared_total",
            "Total number of rows fingerprinted",
            ["table_name", "side"],
            registry=self.registry,
        )

        self.detail_passes_total = Counter(
            "roundtrip_detail_passes_total",
            "Number of row-detail passes triggered by aggregate mismatches",
            ["table_name"],
            registry=self.registry,
        )

        self.attachment_files = Gauge(
            "roundtrip_attachment_files",
            "Number of attachment files per side",
            ["side"],
            registry=self.registry,
        )

        self.attachment_bytes = Gauge(
            "roundtrip_attachment_bytes",
            "Total attachment bytes per side",
            ["side"],
            registry=self.registry,
        )

        self.attachment_sample_mismatches = Gauge(
            "roundtrip_attachment_sample_mismatches",
            "Sampled attachments whose bytes differed",
            registry=self.registry,
        )

        self.health_check_failures_total = Counter(
            "roundtrip_health_check_failures_total",
            "Health checks that failed",
            ["check"],
            registry=self.registry,
        )

        self.exit_code = Gauge(
            "roundtrip_exit_code",
            "Exit code of the last verification run",
            registry=self.registry,
        )

    def record_table(
        self,
        table_name: str,
        matched: bool,
        duration: float,
        before_rows: int,
        after_rows: int,
        escalated: bool,
    ) -> None:
        """
        Record one table verification

        Args:
            table_name: Logical table name
            matched: Whether counts and table hash matched
            duration: Duration in seconds
            before_rows: Rows read from the export
            after_rows: Rows read from the live store
            escalated: Whether a detail pass was needed
        """
        outcome = "match" if matched else "mismatch"
        self.tables_verified_total.labels(table_name=table_name, outcome=outcome).inc()
        self.table_duration_seconds.labels(table_name=table_name).observe(duration)
        self.rows_compared_total.labels(table_name=table_name, side="before").inc(before_rows)
        self.rows_compared_total.labels(table_name=table_name, side="after").inc(after_rows)
        if escalated:
            self.detail_passes_total.labels(table_name=table_name).inc()

    def record_attachments(
        self,
        before_files: int,
        after_files: int,
        before_bytes: int,
        after_bytes: int,
        sample_mismatches: int,
    ) -> None:
        self.attachment_files.labels(side="before").set(before_files)
        self.attachment_files.labels(side="after").set(after_files)
        self.attachment_bytes.labels(side="before").set(before_bytes)
        self.attachment_bytes.labels(side="after").set(after_bytes)
        self.attachment_sample_mismatches.set(sample_mismatches)

    def record_health_failure(self, check: str) -> None:
        self.health_check_failures_total.labels(check=check).inc()

    def record_exit_code(self, code: int) -> None:
        self.exit_code.set(code)

    def write(self, path: str | Path) -> None:
        """Write all metrics to a textfile in Prometheus exposition format."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(path), self.registry)
        logger.info(f"Metrics written to {path}")
