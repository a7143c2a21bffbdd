from sqlalchemy import Column, Integer, String, Float, Boolean, Index
from models.base import Base


class LosState(Base):
    """
    Line-of-sight events, one row per source document.

    Design:
    - time_ms is the simulation clock as logged; time_s = time_ms / 1000
    - sourceId keeps the originating document id for lineage
    """
    __tablename__ = "losState"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sourceId = Column(String(64), nullable=False)
    runId = Column(String(255), nullable=False)
    runTime = Column(String(64), nullable=False)
    designPoint = Column(String(255), nullable=False)
    iteration = Column(Integer, nullable=False)
    time_ms = Column(Float, nullable=False)
    time_s = Column(Float, nullable=False)
    sensorId = Column(String(255), nullable=False)
    targetId = Column(String(255), nullable=False)
    hasLOS = Column(Boolean, nullable=False)

    __table_args__ = (
        Index("idx_los_dp_sensor_target", "designPoint", "sensorId", "targetId"),
    )


class SensorAcqState(Base):
    """Sensor acquisition state changes, one row per source message."""
    __tablename__ = "sensorAcqState"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sourceId = Column(String(64), nullable=False)
    runId = Column(String(255), nullable=False)
    runTime = Column(String(64), nullable=False)
    designPoint = Column(String(255), nullable=False)
    iteration = Column(Integer, nullable=False)
    time_ms = Column(Float, nullable=False)
    time_s = Column(Float, nullable=False)
    receiverId = Column(String(255), nullable=False)
    senderId = Column(String(255), nullable=False)
    sensorId = Column(String(255), nullable=False)
    entityId = Column(String(255), nullable=False)
    targetId = Column(String(255), nullable=False)
    detectionLevel = Column(String(64), nullable=False)
    previousDetectionLevel = Column(String(64), nullable=False)
    timeToDetection = Column(Float, nullable=False)

    __table_args__ = (
        Index("idx_acq_dp_sensor_target", "designPoint", "sensorId", "targetId"),
    )
