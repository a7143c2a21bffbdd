"""
Lookup tables derived from the entity state snapshot.

Four grouping aggregations, each scoped to one designPoint, reduce the
snapshot to small sets of distinct key tuples. Rows are enriched with the
scope and an autoincrement placeholder and written through the BatchLoader.
"""

from typing import Any, Callable, Dict, List, Optional, Type
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from core.dialects import SQLDialect
from core.exceptions import ExtractionError, MalformedRecordError
from core.progress import ProgressReporter
from ingestion.loaders.batch_loader import BatchLoader
from ingestion.loaders.query_builder import Row, TargetTable
from ingestion.loaders.sink import Sink
from ingestion.transformers.entities import force_label, short_name
from ingestion.transformers.projection import (
    Derived,
    FieldPath,
    Placeholder,
    RowProjection,
    ScopeValue,
    document_id,
)
from models.base import CellKind, StageStatus
from models.mapping import EntityIdToName, RunMetadata, SensorDescription, SensorToEntityId
from schemas.config import validate_batch_size
from schemas.results import StageResult
import logging

logger = logging.getLogger(__name__)


class MappingSpec:
    """One grouping aggregation and the table its distinct tuples go to"""

    def __init__(
        self,
        name: str,
        model: Type,
        group_key: Dict[str, str],
        projection: RowProjection,
        unwind: Optional[str] = None
    ):
        self.name = name
        self.model = model
        self.group_key = group_key
        self.projection = projection
        self.unwind = unwind

    def pipeline(self, scope: str) -> List[Dict[str, Any]]:
        stages: List[Dict[str, Any]] = [{"$match": {"designPoint": scope}}]
        if self.unwind:
            stages.append({"$unwind": self.unwind})
        stages.append({"$group": {"_id": self.group_key}})
        stages.append({"$sort": {f"_id.{key}": 1 for key in self.group_key}})
        return stages


SENSOR_DESCRIPTIONS = MappingSpec(
    name="sensorDescription",
    model=SensorDescription,
    unwind="$sensors",
    group_key={
        "sensorId": "$sensors.sensorId",
        "acquireSensorType": "$sensors.acquireSensorType",
        "magnification": "$sensors.magnification",
    },
    projection=RowProjection([
        Placeholder("id"),
        FieldPath("sensorId", "_id.sensorId"),
        FieldPath("acquireSensorType", "_id.acquireSensorType"),
        FieldPath("magnification", "_id.magnification", CellKind.NUMBER),
        ScopeValue("designPoint"),
    ]),
)

ENTITY_NAMES = MappingSpec(
    name="entityIdToName",
    model=EntityIdToName,
    group_key={
        "entityId": "$entityId",
        "source": "$source",
    },
    projection=RowProjection([
        Placeholder("id"),
        FieldPath("entityId", "_id.entityId"),
        FieldPath("source", "_id.source"),
        Derived("force", "_id.source", force_label),
        Derived("shortName", "_id.source", short_name),
        ScopeValue("designPoint"),
    ]),
)

SENSOR_TO_ENTITY = MappingSpec(
    name="sensorToEntityId",
    model=SensorToEntityId,
    unwind="$sensors",
    group_key={
        "entityId": "$entityId",
        "sensorId": "$sensors.sensorId",
    },
    projection=RowProjection([
        Placeholder("id"),
        FieldPath("entityId", "_id.entityId"),
        FieldPath("sensorId", "_id.sensorId"),
        ScopeValue("designPoint"),
    ]),
)

RUN_METADATA = MappingSpec(
    name="runMetadata",
    model=RunMetadata,
    group_key={
        "runId": "$runId",
        "designPoint": "$designPoint",
        "iteration": "$iteration",
    },
    projection=RowProjection([
        Placeholder("id"),
        FieldPath("runId", "_id.runId"),
        ScopeValue("designPoint"),
        FieldPath("iteration", "_id.iteration", CellKind.INTEGER),
    ]),
)

MAPPING_SPECS = (SENSOR_DESCRIPTIONS, ENTITY_NAMES, SENSOR_TO_ENTITY, RUN_METADATA)


class MappingPipeline:
    """
    Build and load the lookup tables for one scope.

    The aggregation results are small, so each table's rows are collected in
    memory, deduplicated and handed to the BatchLoader in one call.
    """

    def __init__(
        self,
        collection: Collection,
        dialect: SQLDialect,
        sink_factory: Callable[[], Sink],
        scope: str,
        batch_size: int = 100,
        reporter: Optional[ProgressReporter] = None,
        specs=MAPPING_SPECS
    ):
        self.collection = collection
        self.dialect = dialect
        self.sink_factory = sink_factory
        self.scope = scope
        self.batch_size = validate_batch_size(batch_size)
        self.loader = BatchLoader(reporter)
        self.specs = tuple(specs)

    def run(self) -> List[StageResult]:
        results = []
        for spec in self.specs:
            results.append(self.run_spec(spec))
        return results

    def run_spec(self, spec: MappingSpec) -> StageResult:
        table = TargetTable.from_model(spec.model, self.dialect)
        result = StageResult(stage=f"mapping:{spec.name}")

        rows = self.collect_rows(spec, result)
        result.records_expected = len(rows) + result.records_failed

        logger.info(
            f"[{result.stage}] {len(rows)} distinct rows for designPoint={self.scope}"
        )
        result.statements_executed = self.loader.write_all(
            rows, table, self.batch_size, self.sink_factory, stage=result.stage
        )
        result.records_loaded = len(rows)
        result.status = StageStatus.PARTIAL if result.records_failed else StageStatus.SUCCESS
        return result

    def collect_rows(self, spec: MappingSpec, result: StageResult) -> List[Row]:
        """Run the aggregation and project its output, dropping duplicates and malformed groups"""
        rows: List[Row] = []
        seen = set()

        for group in self._aggregate(spec):
            result.records_extracted += 1
            try:
                row = spec.projection.project(group, self.scope)
            except MalformedRecordError as e:
                result.records_failed += 1
                logger.warning(
                    f"[mapping:{spec.name}] dropped group {document_id(group)}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                continue

            key = tuple(row)
            if key in seen:
                continue
            seen.add(key)
            rows.append(row)

        return rows

    def _aggregate(self, spec: MappingSpec):
        pipeline = spec.pipeline(self.scope)
        try:
            cursor = self.collection.aggregate(pipeline, allowDiskUse=True)
            for group in cursor:
                yield group
        except PyMongoError as e:
            raise ExtractionError(
                f"Aggregation for {spec.name} failed",
                context={
                    "collection": getattr(self.collection, "name", str(self.collection)),
                    "scope": self.scope,
                    "stage": f"mapping:{spec.name}",
                },
                original_exception=e
            )
