"""
SQLAlchemy ORM models for the target tables.

The ETL does not create or migrate these tables; the models are the single
place where each table's column order is declared, and that order is what
positional INSERT statements are built against.

Models:
    base: Base declarative class and shared enums (Force, CellKind, ConnectionPolicy, StageStatus)
    mapping: Lookup tables derived from the entity state snapshot
    events: Line-of-sight and sensor-acquisition event tables

Usage:
    from models.events import LosState
    from ingestion.loaders.query_builder import TargetTable

    table = TargetTable.from_model(LosState, dialect)
"""

__all__ = [
    "base",
    "mapping",
    "events",
]
