from sqlalchemy import Column, Integer, String, Float, Index
from models.base import Base


class SensorDescription(Base):
    """
    One row per distinct sensor configuration seen in a design point.

    Source: grouping over the entity state snapshot, unwound by sensor.
    """
    __tablename__ = "sensorDescription"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sensorId = Column(String(255), nullable=False)
    acquireSensorType = Column(String(255), nullable=False)
    magnification = Column(Float, nullable=False)
    designPoint = Column(String(255), nullable=False, index=True)


class EntityIdToName(Base):
    """
    Maps simulation entity ids to their source path.

    ``force`` and ``shortName`` are derived from ``source`` at load time.
    """
    __tablename__ = "entityIdToName"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entityId = Column(String(255), nullable=False)
    source = Column(String(1024), nullable=False)
    force = Column(String(32), nullable=False)
    shortName = Column(String(255), nullable=False)
    designPoint = Column(String(255), nullable=False, index=True)


class SensorToEntityId(Base):
    """Which entity carries which sensor."""
    __tablename__ = "sensorToEntityId"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entityId = Column(String(255), nullable=False)
    sensorId = Column(String(255), nullable=False)
    designPoint = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_sensor_entity_dp", "designPoint", "sensorId"),
    )


class RunMetadata(Base):
    """Distinct (runId, designPoint, iteration) triples."""
    __tablename__ = "runMetadata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    runId = Column(String(255), nullable=False)
    designPoint = Column(String(255), nullable=False, index=True)
    iteration = Column(Integer, nullable=False)
