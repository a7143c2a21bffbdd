"""
Row-at-a-time ETL for event tables.

Each document is extracted, projected and written as a single-row INSERT
before the next document is pulled, so memory stays bounded no matter how
large the event collection is.
"""

from typing import Callable, Optional
from core.exceptions import (
    ConfigurationError,
    MalformedRecordError,
    UnsupportedCellError,
)
from core.progress import NullProgressReporter, ProgressReporter, ProgressState
from ingestion.extractors.cursor_extractor import CursorExtractor
from ingestion.loaders.query_builder import TargetTable, build_insert
from ingestion.loaders.sink import Sink
from ingestion.transformers.projection import RowProjection, document_id
from models.base import ConnectionPolicy, StageStatus
from schemas.results import StageResult
import logging

logger = logging.getLogger(__name__)


class StreamPipeline:
    """
    Stream documents from a cursor into one target table.

    Connection policy:
    - HOLD: one sink acquired before iteration and released after the last document
    - RECONNECT: the sink is released and re-acquired after every
      ``reconnect_every`` written rows

    A document that cannot be projected is dropped, logged and counted; it is
    never sent to the sink. Sink and extraction errors abort the stream.
    """

    def __init__(
        self,
        name: str,
        extractor: CursorExtractor,
        projection: RowProjection,
        table: TargetTable,
        sink_factory: Callable[[], Sink],
        scope: str,
        policy: ConnectionPolicy = ConnectionPolicy.HOLD,
        reconnect_every: int = 1000,
        reporter: Optional[ProgressReporter] = None
    ):
        if projection.column_names != table.columns:
            raise ConfigurationError(
                f"Projection for {name} does not match columns of {table.name}",
                context={
                    "stage": name,
                    "projection": ",".join(projection.column_names),
                    "table_columns": ",".join(table.columns),
                }
            )
        if reconnect_every <= 0:
            raise ConfigurationError(
                "reconnect interval must be a positive integer",
                context={"setting": "STREAM_RECONNECT_EVERY", "value": reconnect_every}
            )

        self.name = name
        self.extractor = extractor
        self.projection = projection
        self.table = table
        self.sink_factory = sink_factory
        self.scope = scope
        self.policy = ConnectionPolicy(policy)
        self.reconnect_every = reconnect_every
        self.reporter = reporter or NullProgressReporter()

    def run(self) -> StageResult:
        total = self.extractor.count()
        progress = ProgressState(total)
        result = StageResult(stage=self.name, records_expected=total)
        self.reporter.stage_started(self.name, total)

        sink: Optional[Sink] = None
        documents = None
        try:
            if self.policy == ConnectionPolicy.HOLD:
                sink = self.sink_factory().open()
            documents = iter(self.extractor)

            for document in documents:
                result.records_extracted += 1
                progress.advance()

                try:
                    row = self.projection.project(document, self.scope)
                    statement = build_insert([row], self.table)
                except (MalformedRecordError, UnsupportedCellError) as e:
                    result.records_failed += 1
                    logger.warning(
                        f"[{self.name}] dropped document "
                        f"{e.context.get('source_id') or document_id(document)}: {e.message}",
                        extra={"error_context": e.to_dict()}
                    )
                    self.reporter.report(self.name, progress)
                    continue

                if sink is None:
                    sink = self.sink_factory().open()
                sink.execute(statement, table_name=self.table.name)
                result.records_loaded += 1
                result.statements_executed += 1

                if (
                    self.policy == ConnectionPolicy.RECONNECT
                    and result.records_loaded % self.reconnect_every == 0
                ):
                    sink.close()
                    sink = None

                self.reporter.report(self.name, progress)
        finally:
            if sink is not None:
                sink.close()
            close = getattr(documents, "close", None)
            if close is not None:
                close()

        result.status = StageStatus.PARTIAL if result.records_failed else StageStatus.SUCCESS
        self.reporter.stage_finished(self.name, progress)

        if result.records_failed:
            logger.warning(
                f"[{self.name}] dropped {result.records_failed} of "
                f"{result.records_extracted} documents"
            )
        logger.info(
            f"[{self.name}] loaded {result.records_loaded} rows into {self.table.name}"
        )
        return result
