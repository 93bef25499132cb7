"""
Partition fan-out executor.

Two phases per request:
    1. filter_available: probe every planned partition concurrently and drop
       the ones that do not exist.
    2. execute: run the remaining partition queries on a bounded thread pool,
       each on its own DuckDB cursor, and join them all.

The join is fail-fast: the first failed partition (or the request deadline)
cancels queued queries, interrupts running cursors and fails the request.
With ALLOW_PARTIAL_RESULTS=true, failed partitions become warnings instead.

Exports:
    ExecutionOutcome: Partition results in plan order plus warnings
    PartitionExecutor: Probe + fan-out + join
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import ServiceConfig
from exceptions import (
    EngineQueryError,
    NoDataForSelectorError,
    PartitionUnavailableError,
    QueryTimeoutError,
)
from infrastructure.duckdb import IDuckDBRepository
from infrastructure.partition_probe import IPartitionProbe
from util_logger import LoggerFactory, ComponentType

from .models import PartitionQuery, PartitionResult, TrajectoryRow

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "PartitionExecutor")


@dataclass
class ExecutionOutcome:
    results: List[PartitionResult]
    warnings: List[str] = field(default_factory=list)


class PartitionExecutor:
    """
    Runs partition queries concurrently with a fixed ceiling.

    Args:
        repository: DuckDB repository (cursor() + query_safe())
        probe: Partition existence probe, or None to skip probing
        config: Service settings (pool size, deadline, partial mode)
    """

    def __init__(
        self,
        repository: IDuckDBRepository,
        probe: Optional[IPartitionProbe],
        config: ServiceConfig,
    ):
        self.repository = repository
        self.probe = probe
        self.config = config

    # ========================================================================
    # PHASE 1: EXISTENCE PROBE
    # ========================================================================

    def filter_available(
        self,
        queries: List[PartitionQuery],
        explicit: bool = False,
        selector: Optional[str] = None,
    ) -> List[PartitionQuery]:
        """
        Drop partitions whose file does not exist, keeping plan order.

        Args:
            queries: Planned partition queries
            explicit: The request named this single partition
            selector: Time selector, for the error message

        Returns:
            Available queries in plan order

        Raises:
            PartitionUnavailableError: An explicit partition failed the probe
            NoDataForSelectorError: Nothing is left to query
        """
        if self.probe is None or not self.config.check_partitions or not queries:
            available = list(queries)
        else:
            exists: Dict[str, bool] = {}
            workers = min(self.config.max_concurrent_queries, len(queries))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
                futures = {pool.submit(self.probe.exists, q.location): q for q in queries}
                for future in as_completed(futures):
                    exists[futures[future].key] = future.result()

            available = [q for q in queries if exists[q.key]]
            skipped = [q.key for q in queries if not exists[q.key]]

            if skipped:
                if explicit:
                    raise PartitionUnavailableError(queries[0].location)
                logger.info(f"Skipping {len(skipped)} unavailable partitions: {skipped}")

        if not available:
            raise NoDataForSelectorError(selector)
        return available

    # ========================================================================
    # PHASE 2: FAN-OUT
    # ========================================================================

    def execute(self, queries: List[PartitionQuery]) -> ExecutionOutcome:
        """
        Run every query and join them.

        Returns:
            ExecutionOutcome with one PartitionResult per successful query, in plan order

        Raises:
            EngineQueryError: A partition query failed (fail-fast mode)
            QueryTimeoutError: The deadline expired before all queries finished
        """
        if not queries:
            return ExecutionOutcome(results=[])

        timeout = self.config.query_timeout_seconds
        deadline = time.monotonic() + timeout
        workers = min(self.config.max_concurrent_queries, len(queries))

        running: Dict[int, Any] = {}
        lock = threading.Lock()
        aborted = threading.Event()

        results: List[Optional[PartitionResult]] = [None] * len(queries)
        warnings: List[str] = []

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="partition")
        futures: Dict[Future, int] = {
            pool.submit(self._run, index, query, running, lock, aborted): index
            for index, query in enumerate(queries)
        }
        logger.info(f"Dispatched {len(queries)} partition queries on {workers} workers")

        try:
            pending = set(futures)
            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._abort(pending, running, lock, aborted)
                    raise QueryTimeoutError(
                        f"Query exceeded the {timeout:g}s deadline "
                        f"({len(pending)} of {len(queries)} partitions unfinished)"
                    )

                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for future in done:
                    index = futures[future]
                    query = queries[index]
                    try:
                        results[index] = future.result()
                    except EngineQueryError as e:
                        if self.config.allow_partial_results:
                            logger.warning(f"Partition {query.key} failed, continuing: {e.message}")
                            warnings.append(f"Partition {query.key} failed: {e.message}")
                            continue
                        self._abort(pending, running, lock, aborted)
                        logger.error(f"Partition {query.key} failed, aborting request: {e.message}")
                        raise EngineQueryError(e.message, partition=query.key) from e
                    except BaseException:
                        self._abort(pending, running, lock, aborted)
                        raise
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return ExecutionOutcome(
            results=[r for r in results if r is not None],
            warnings=warnings,
        )

    def _run(
        self,
        index: int,
        query: PartitionQuery,
        running: Dict[int, Any],
        lock: threading.Lock,
        aborted: threading.Event,
    ) -> PartitionResult:
        """Worker: run one partition query on a private cursor."""
        if aborted.is_set():
            raise EngineQueryError("Request aborted", partition=query.key)

        cursor = self.repository.cursor()
        with lock:
            # _abort snapshots running under this lock, so a cursor registered
            # after the snapshot must see the flag here
            if aborted.is_set():
                cursor.close()
                raise EngineQueryError("Request aborted", partition=query.key)
            running[index] = cursor
        try:
            started = time.perf_counter()
            result = self.repository.query_safe(query.builder, cursor=cursor)
            logger.debug(
                f"Partition {query.key}: {len(result.rows)} rows "
                f"in {time.perf_counter() - started:.3f}s"
            )
        finally:
            with lock:
                running.pop(index, None)
            cursor.close()

        return PartitionResult(
            key=query.key,
            location=query.location,
            columns=result.columns,
            column_types=result.column_types,
            rows=[TrajectoryRow.from_values(result.columns, values) for values in result.rows],
        )

    @staticmethod
    def _abort(pending, running: Dict[int, Any], lock: threading.Lock, aborted: threading.Event) -> None:
        """Cancel queued futures and interrupt running cursors."""
        aborted.set()
        for future in pending:
            future.cancel()
        with lock:
            cursors = list(running.values())
        for cursor in cursors:
            cursor.interrupt()
        if cursors:
            logger.info(f"Interrupted {len(cursors)} running partition queries")
