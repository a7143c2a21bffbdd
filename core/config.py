"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Source document store
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DATABASE: str = "simulation"
    STATE_COLLECTION: str = "entityState"
    LOS_COLLECTION: str = "losEvents"
    MESSAGE_COLLECTION: str = "simulationMessages"

    # Target relational store
    SINK_DIALECT: str = "postgresql"
    SINK_HOST: str = "localhost"
    SINK_PORT: int = 5432
    SINK_USER: str = "etl_user"
    SINK_PASSWORD: Optional[str] = None
    SINK_DATABASE: str = "etl_db"

    # Environment
    LOG_LEVEL: str = "INFO"

    # ETL Configuration
    DESIGN_POINT: Optional[str] = None
    ETL_BATCH_SIZE: int = 100
    STREAM_CONNECTION_POLICY: str = "hold"
    STREAM_RECONNECT_EVERY: int = 1000
    REFRESH_VIEWS: bool = True


settings = Settings()
