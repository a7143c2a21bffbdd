# ============================================================================
# File: ingestion/runner.py
# Description: Orchestrates one designPoint through every ETL stage
# ============================================================================
"""
ETL Runner - sequences the stages for a single scope.

Stages, strictly in order and never overlapping:
1. mapping      - lookup tables from the entity state snapshot (batched)
2. los          - line-of-sight events (streamed, row at a time)
3. acquisition  - sensor acquisition messages (streamed, row at a time)
4. views        - recompute the materialized sensor/target pair aggregates

Row-level defects are counted by the stage that hit them. Any error that
escapes a stage aborts the run; rows already committed stay committed.
"""

from typing import Callable, List, Optional
from pymongo.database import Database
from core.dialects import SQLDialect
from core.exceptions import ETLException
from core.progress import LoggingProgressReporter, ProgressReporter
from ingestion.extractors.cursor_extractor import CursorExtractor
from ingestion.loaders.query_builder import TargetTable
from ingestion.loaders.sink import Sink
from ingestion.pipelines.mapping import MappingPipeline
from ingestion.pipelines.stream import StreamPipeline
from ingestion.transformers.events import (
    ACQUISITION_PROJECTION,
    LOS_PROJECTION,
    acquisition_filter,
    los_filter,
)
from ingestion.views import ViewRefresher
from models.events import LosState, SensorAcqState
from models.base import StageStatus
from schemas.config import JobConfig, SourceConfig
from schemas.results import RunResult, StageResult
import logging

logger = logging.getLogger(__name__)


class ETLRunner:
    """
    Orchestrator for one ETLScope.

    Responsibilities:
    - Validate configuration before any I/O
    - Run mapping, LOS and acquisition stages sequentially
    - Refresh materialized aggregates once all writes are done
    - Attach scope and stage to any fatal error
    """

    def __init__(
        self,
        source_db: Database,
        source_config: SourceConfig,
        sink_factory: Callable[[], Sink],
        dialect: SQLDialect,
        job: JobConfig,
        reporter: Optional[ProgressReporter] = None
    ):
        self.source_db = source_db
        self.source_config = source_config
        self.sink_factory = sink_factory
        self.dialect = dialect
        self.job = job
        # lookup tables report once per chunk, event streams once per row
        self.batch_reporter = reporter or LoggingProgressReporter(every=1)
        self.reporter = reporter or LoggingProgressReporter(every=1000)

        # Fails with ConfigurationError now rather than after the writes
        self.view_refresher = (
            ViewRefresher(dialect, sink_factory) if job.refresh_views else None
        )

    @property
    def scope(self) -> str:
        return self.job.scope

    def mapping_pipeline(self) -> MappingPipeline:
        return MappingPipeline(
            collection=self.source_db[self.source_config.state_collection],
            dialect=self.dialect,
            sink_factory=self.sink_factory,
            scope=self.scope,
            batch_size=self.job.batch_size,
            reporter=self.batch_reporter,
        )

    def los_pipeline(self) -> StreamPipeline:
        return self._stream(
            "los",
            self.source_config.los_collection,
            los_filter(self.scope),
            LOS_PROJECTION,
            LosState,
        )

    def acquisition_pipeline(self) -> StreamPipeline:
        return self._stream(
            "acquisition",
            self.source_config.message_collection,
            acquisition_filter(self.scope),
            ACQUISITION_PROJECTION,
            SensorAcqState,
        )

    def _stream(self, name, collection_name, match, projection, model) -> StreamPipeline:
        extractor = CursorExtractor(
            collection=self.source_db[collection_name],
            match=match,
            projection=projection.source_fields(),
        )
        return StreamPipeline(
            name=name,
            extractor=extractor,
            projection=projection,
            table=TargetTable.from_model(model, self.dialect),
            sink_factory=self.sink_factory,
            scope=self.scope,
            policy=self.job.connection_policy,
            reconnect_every=self.job.reconnect_every,
            reporter=self.reporter,
        )

    def run(self) -> RunResult:
        """
        Run every stage for the configured scope.

        Returns:
            RunResult with per-stage counters and ``completed=True``

        Raises:
            ETLException (or a subclass) carrying ``scope`` and ``stage`` in
            its context when a stage fails
        """
        result = RunResult(scope=self.scope)
        logger.info(f"Starting ETL for designPoint={self.scope}")

        mapping_results: List[StageResult] = self._run_stage(
            "mapping", lambda: self.mapping_pipeline().run()
        )
        result.stages.extend(mapping_results)

        result.stages.append(self._run_stage("los", lambda: self.los_pipeline().run()))
        result.stages.append(
            self._run_stage("acquisition", lambda: self.acquisition_pipeline().run())
        )

        if self.view_refresher is not None:
            result.views_refreshed = self._run_stage("views", self.view_refresher.refresh)
        else:
            logger.info("Materialized view refresh disabled")
            result.stages.append(StageResult(stage="views", status=StageStatus.SKIPPED))

        result.completed = True
        logger.info(
            f"ETL completed for designPoint={self.scope}. "
            f"Loaded: {result.records_loaded}, Dropped: {result.records_failed}"
        )
        return result

    def _run_stage(self, stage: str, action):
        logger.info(f"[{stage}] stage started for designPoint={self.scope}")
        try:
            return action()

        except ETLException as e:
            e.context.setdefault("scope", self.scope)
            e.context.setdefault("stage", stage)
            logger.error(
                f"ETL stage {stage} failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            raise

        except Exception as e:
            logger.exception(f"Unexpected error in ETL stage {stage}")
            raise ETLException(
                f"Unexpected error in stage {stage}",
                context={"scope": self.scope, "stage": stage},
                original_exception=e
            )
