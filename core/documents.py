"""
Document store client management with PyMongo
"""

from pymongo import MongoClient
from pymongo.database import Database
from schemas.config import SourceConfig
import logging

logger = logging.getLogger(__name__)


def create_source_client(config: SourceConfig, **kwargs) -> MongoClient:
    """Create a client; PyMongo connects lazily on first operation"""
    logger.debug(f"Creating document store client for database {config.database}")
    return MongoClient(config.uri, **kwargs)


def get_source_database(client: MongoClient, config: SourceConfig) -> Database:
    return client[config.database]
