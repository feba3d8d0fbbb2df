"""
Parallel table verification.

Verifies multiple tables concurrently using ThreadPoolExecutor. Tables share
no mutable state, so results are identical to a sequential run; they are
returned keyed by table name and re-ordered to the requested table order.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from typing import Any

from src.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


class ParallelTableVerifier:
    """
    Runs a per-table verification function across worker threads.

    The verify function must be safe to call from any thread; in practice it
    opens its own read-only store connection per call.
    """

    def __init__(self, max_workers: int = 4):
        """
        Initialize parallel verifier.

        Args:
            max_workers: Maximum concurrent workers (default: 4)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def verify_tables(
        self,
        tables: list[str],
        verify_func: Callable[..., Any],
        **verify_kwargs,
    ) -> dict[str, Any]:
        """
        Verify multiple tables in parallel.

        Args:
            tables: Logical table names, in report order
            verify_func: Called as verify_func(table=name, **verify_kwargs)
            **verify_kwargs: Additional keyword arguments for verify_func

        Returns:
            Results keyed by table name, in the order of `tables`

        Raises:
            Exception: The first table failure (in table order), after every
                submitted table has finished
        """
        if not tables:
            logger.warning("No tables to verify")
            return {}

        start_time = datetime.now(UTC)
        results: dict[str, Any] = {}
        errors: dict[str, BaseException] = {}

        with trace_operation(
            "parallel_verify_tables",
            table_count=len(tables),
            max_workers=self.max_workers,
        ):
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_table = {
                    executor.submit(verify_func, table=table, **verify_kwargs): table
                    for table in tables
                }

                completed = 0
                for future in as_completed(future_to_table):
                    table = future_to_table[future]
                    completed += 1
                    try:
                        results[table] = future.result()
                        logger.debug(f"Table {table} verified ({completed}/{len(tables)})")
                    except Exception as e:
                        errors[table] = e
                        logger.error(
                            f"Table {table} verification failed: {e} "
                            f"({completed}/{len(tables)})"
                        )

        duration = (datetime.now(UTC) - start_time).total_seconds()
        logger.info(
            f"Parallel verification complete: {len(results)}/{len(tables)} tables "
            f"in {duration:.2f}s with {self.max_workers} workers"
        )

        for table in tables:
            if table in errors:
                raise errors[table]

        return {table: results[table] for table in tables}
