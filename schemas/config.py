"""
Pydantic schemas for job configuration records with validation
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from core.config import Settings
from core.dialects import get_dialect, SQLDialect
from core.exceptions import ConfigurationError
from models.base import ConnectionPolicy


class SourceConfig(BaseModel):
    """Connection descriptor for the document store"""

    model_config = ConfigDict(frozen=True)

    uri: str
    database: str
    state_collection: str = "entityState"
    los_collection: str = "losEvents"
    message_collection: str = "simulationMessages"


class SinkConfig(BaseModel):
    """
    Connection descriptor for the relational store.

    For sqlite, ``database`` is the path of the database file and the
    network fields are ignored.
    """

    model_config = ConfigDict(frozen=True)

    dialect: str = "postgresql"
    host: str = "localhost"
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    database: str

    @field_validator("dialect")
    @classmethod
    def known_dialect(cls, v):
        """Reject dialects we cannot render statements for"""
        return get_dialect(v).name

    @property
    def sql_dialect(self) -> SQLDialect:
        return get_dialect(self.dialect)


class JobConfig(BaseModel):
    """
    Per-invocation job parameters.

    Ensures:
    - Exactly one non-empty scope (designPoint)
    - Positive batch size and reconnect interval
    """

    model_config = ConfigDict(frozen=True)

    scope: str
    batch_size: int = 100
    connection_policy: ConnectionPolicy = ConnectionPolicy.HOLD
    reconnect_every: int = 1000
    refresh_views: bool = True

    @field_validator("scope")
    @classmethod
    def non_empty_scope(cls, v):
        if not v or not v.strip():
            raise ConfigurationError(
                "designPoint scope must be a non-empty string",
                context={"setting": "DESIGN_POINT", "value": v}
            )
        return v

    @field_validator("batch_size", mode="before")
    @classmethod
    def positive_batch_size(cls, v):
        return validate_batch_size(v)

    @field_validator("reconnect_every", mode="before")
    @classmethod
    def positive_reconnect_every(cls, v):
        if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
            raise ConfigurationError(
                "reconnect interval must be a positive integer",
                context={"setting": "STREAM_RECONNECT_EVERY", "value": v}
            )
        return v

    @field_validator("connection_policy", mode="before")
    @classmethod
    def known_policy(cls, v):
        try:
            return ConnectionPolicy(v)
        except ValueError:
            raise ConfigurationError(
                f"Unknown stream connection policy: {v!r}",
                context={"setting": "STREAM_CONNECTION_POLICY", "value": v}
            )


def validate_batch_size(batch_size) -> int:
    """Return batch_size if it is a positive integer, else raise ConfigurationError"""
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise ConfigurationError(
            "batch size must be a positive integer",
            context={"setting": "ETL_BATCH_SIZE", "value": batch_size}
        )
    return batch_size


def source_config_from_settings(settings: Settings) -> SourceConfig:
    return SourceConfig(
        uri=settings.MONGO_URI,
        database=settings.MONGO_DATABASE,
        state_collection=settings.STATE_COLLECTION,
        los_collection=settings.LOS_COLLECTION,
        message_collection=settings.MESSAGE_COLLECTION,
    )


def sink_config_from_settings(settings: Settings) -> SinkConfig:
    return SinkConfig(
        dialect=settings.SINK_DIALECT,
        host=settings.SINK_HOST,
        port=settings.SINK_PORT,
        user=settings.SINK_USER,
        password=settings.SINK_PASSWORD,
        database=settings.SINK_DATABASE,
    )


def job_config_from_settings(settings: Settings, scope: Optional[str] = None) -> JobConfig:
    """Build the job record, letting an explicit scope override DESIGN_POINT"""
    return JobConfig(
        scope=scope if scope is not None else (settings.DESIGN_POINT or ""),
        batch_size=settings.ETL_BATCH_SIZE,
        connection_policy=settings.STREAM_CONNECTION_POLICY,
        reconnect_every=settings.STREAM_RECONNECT_EVERY,
        refresh_views=settings.REFRESH_VIEWS,
    )
