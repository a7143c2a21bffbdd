"""
Core utilities and configuration for the event-log ETL.

Modules:
    config: Application settings from environment variables / .env
    dialects: SQL dialect records (autoincrement token, literals, quoting)
    database: SQLAlchemy engine creation for the relational sink
    documents: PyMongo client creation for the document source
    exceptions: Exception hierarchy with structured context
    logging: Logging configuration
    progress: Advisory progress state and reporters

Usage:
    from core.config import settings
    from core.exceptions import ConfigurationError, MalformedRecordError
    from core.logging import setup_logging

Example:
    setup_logging()
    engine = create_sink_engine(sink_config)
"""

__all__ = [
    "config",
    "dialects",
    "database",
    "documents",
    "exceptions",
    "logging",
    "progress",
]
