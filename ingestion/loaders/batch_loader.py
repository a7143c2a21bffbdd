"""
Load row sets in fixed-size batches, one INSERT per batch.

Each batch acquires its own sink and releases it before the next batch, so
no connection is held between writes. Batches are independent units of
work: a failure aborts the remaining batches but leaves earlier ones
committed.
"""

from itertools import islice
from typing import Callable, Iterable, Iterator, List, Optional
from core.progress import NullProgressReporter, ProgressReporter, ProgressState
from ingestion.loaders.query_builder import Row, TargetTable, build_insert
from ingestion.loaders.sink import Sink
from schemas.config import validate_batch_size
import logging

logger = logging.getLogger(__name__)


def chunked(rows: Iterable[Row], size: int) -> Iterator[List[Row]]:
    """Yield contiguous lists of at most ``size`` rows without materializing the input"""
    iterator = iter(rows)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class BatchLoader:
    """
    Partition rows into ceil(N / batch_size) statements.

    Progress is reported as percent remaining after every batch when the row
    count is known up front.
    """

    def __init__(self, reporter: Optional[ProgressReporter] = None):
        self.reporter = reporter or NullProgressReporter()

    def write_all(
        self,
        rows: Iterable[Row],
        table: TargetTable,
        batch_size: int,
        sink_factory: Callable[[], Sink],
        stage: Optional[str] = None
    ) -> int:
        """
        Write every row to ``table``.

        Args:
            rows: Rows matching the table's column order
            table: Destination table
            batch_size: Rows per statement; must be a positive integer
            sink_factory: Returns a fresh, unopened Sink per batch
            stage: Label used for progress reporting

        Returns:
            Number of statements issued
        """
        validate_batch_size(batch_size)
        stage = stage or table.name

        total = len(rows) if hasattr(rows, "__len__") else None
        progress = ProgressState(total)
        if total == 0:
            logger.info(f"No rows to load into {table.name}")
            return 0

        self.reporter.stage_started(stage, total)
        statements = 0

        for batch in chunked(rows, batch_size):
            statement = build_insert(batch, table)
            with sink_factory() as sink:
                sink.execute(statement, table_name=table.name)
            statements += 1
            progress.advance(len(batch))
            self.reporter.report(stage, progress)
            logger.debug(f"Batch {statements}: loaded {len(batch)} rows into {table.name}")

        self.reporter.stage_finished(stage, progress)
        logger.info(
            f"Loaded {progress.processed} rows into {table.name} "
            f"in {statements} statements"
        )
        return statements
