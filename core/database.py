"""
Relational store engine management with SQLAlchemy
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL
from sqlalchemy.pool import NullPool
from schemas.config import SinkConfig
import logging

logger = logging.getLogger(__name__)


def build_sink_url(config: SinkConfig) -> URL:
    """Translate a sink descriptor into a SQLAlchemy URL"""
    dialect = config.sql_dialect
    if dialect.name == "sqlite":
        return URL.create(dialect.driver, database=config.database)

    return URL.create(
        dialect.driver,
        username=config.user,
        password=config.password,
        host=config.host,
        port=config.port,
        database=config.database,
    )


def create_sink_engine(config: SinkConfig, echo: bool = False) -> Engine:
    """
    Create an engine whose connections are really closed on release.

    NullPool makes every ``connect()`` a fresh connection, so a sink that is
    released frees the server-side resource immediately.
    """
    url = build_sink_url(config)
    logger.debug(f"Creating sink engine for {url.render_as_string(hide_password=True)}")
    return create_engine(
        url,
        echo=echo,
        poolclass=NullPool,
    )
