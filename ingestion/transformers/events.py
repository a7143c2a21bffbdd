"""
Row schemas for the event-log tables.

Line-of-sight documents come from the LOS event collection; acquisition
rows come from sensor acquisition state-change messages in the simulation
message log. Both are scoped by ``designPoint``.
"""

from typing import Any, Dict
from ingestion.transformers.projection import (
    Derived,
    FieldPath,
    Placeholder,
    RowProjection,
    ScopeValue,
)
from models.base import CellKind

ACQUISITION_MESSAGE_TYPE = "SensorAcquisitionStateChange"


def ms_to_seconds(time_ms):
    return time_ms / 1000


def _run_columns():
    return [
        Placeholder("id"),
        FieldPath("sourceId", "_id"),
        FieldPath("runId", "runId"),
        FieldPath("runTime", "runTime"),
        ScopeValue("designPoint"),
        FieldPath("iteration", "iteration", CellKind.INTEGER),
        FieldPath("time_ms", "time", CellKind.NUMBER),
        Derived("time_s", "time", ms_to_seconds, CellKind.NUMBER),
    ]


LOS_PROJECTION = RowProjection(_run_columns() + [
    FieldPath("sensorId", "sensorId"),
    FieldPath("targetId", "targetId"),
    FieldPath("hasLOS", "hasLOS", CellKind.BOOLEAN),
])

ACQUISITION_PROJECTION = RowProjection(_run_columns() + [
    FieldPath("receiverId", "receiverId"),
    FieldPath("senderId", "senderId"),
    FieldPath("sensorId", "message.sensorId"),
    FieldPath("entityId", "message.entityId"),
    FieldPath("targetId", "message.targetId"),
    FieldPath("detectionLevel", "message.detectionLevel"),
    FieldPath("previousDetectionLevel", "message.previousDetectionLevel"),
    FieldPath("timeToDetection", "message.timeToDetection", CellKind.NUMBER),
])


def los_filter(scope: str) -> Dict[str, Any]:
    return {"designPoint": scope}


def acquisition_filter(scope: str) -> Dict[str, Any]:
    return {"designPoint": scope, "messageType": ACQUISITION_MESSAGE_TYPE}
