"""
Script to run the ETL pipeline for one designPoint

Usage:
    python scripts/run_etl.py [designPoint]

The designPoint defaults to the DESIGN_POINT setting.
"""

import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.documents import create_source_client, get_source_database
from core.exceptions import ConfigurationError, ETLException
from core.logging import setup_logging
from ingestion.loaders.sink import SinkFactory
from ingestion.runner import ETLRunner
from schemas.config import (
    job_config_from_settings,
    sink_config_from_settings,
    source_config_from_settings,
)

logger = logging.getLogger(__name__)


def run_etl(scope=None) -> int:
    """Run ETL for a single scope; returns a process exit code"""
    setup_logging()

    try:
        job = job_config_from_settings(settings, scope)
        source_config = source_config_from_settings(settings)
        sink_config = sink_config_from_settings(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    client = create_source_client(source_config)
    sinks = SinkFactory.from_config(sink_config)

    try:
        runner = ETLRunner(
            source_db=get_source_database(client, source_config),
            source_config=source_config,
            sink_factory=sinks,
            dialect=sink_config.sql_dialect,
            job=job,
        )
        result = runner.run()
        for stage in result.stages:
            logger.info(
                f"{stage.stage}: status={stage.status.value} "
                f"extracted={stage.records_extracted} loaded={stage.records_loaded} "
                f"dropped={stage.records_failed}"
            )
        return 0

    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except ETLException as e:
        logger.error(f"ETL pipeline error: {e}")
        return 1
    finally:
        sinks.dispose()
        client.close()


if __name__ == "__main__":
    sys.exit(run_etl(sys.argv[1] if len(sys.argv) > 1 else None))
