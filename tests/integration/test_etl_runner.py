"""
Integration tests for the orchestrated run of one designPoint
"""

import pytest
from unittest.mock import MagicMock
from core.exceptions import ConfigurationError, ETLException, StatementExecutionError
from ingestion.runner import ETLRunner
from models.base import StageStatus
from schemas.config import JobConfig, SourceConfig

SOURCE = SourceConfig(uri="mongodb://unused", database="simulation")


@pytest.fixture
def source_db(make_collection, los_documents, acquisition_documents, entity_groups):
    return {
        "entityState": make_collection("entityState", entity_groups),
        "losEvents": make_collection("losEvents", los_documents[:12]),
        "simulationMessages": make_collection("simulationMessages", acquisition_documents),
    }


def statement_targets(statements):
    return [s.split(" ")[2] if s.startswith("INSERT") else s for s in statements]


def test_full_run_sequences_stages(source_db, postgres, sink_factory):
    runner = ETLRunner(source_db, SOURCE, sink_factory, postgres, JobConfig(scope="dp-01", batch_size=5))
    result = runner.run()

    assert result.completed
    assert [s.stage for s in result.stages] == [
        "mapping:sensorDescription",
        "mapping:entityIdToName",
        "mapping:sensorToEntityId",
        "mapping:runMetadata",
        "los",
        "acquisition",
    ]
    assert result.stage("los").records_loaded == 12
    assert result.stage("acquisition").records_loaded == 4
    assert result.views_refreshed == [
        "los_sensor_target_pairs_materialized",
        "acq_sensor_target_pairs_materialized",
    ]

    targets = statement_targets(sink_factory.statements)
    first_los = targets.index('"losState"')
    first_acq = targets.index('"sensorAcqState"')
    assert all(t != '"losState"' for t in targets[first_acq:])
    assert all(t not in ('"losState"', '"sensorAcqState"') for t in targets[:first_los])
    assert sink_factory.statements[-2:] == [
        'REFRESH MATERIALIZED VIEW "los_sensor_target_pairs_materialized"',
        'REFRESH MATERIALIZED VIEW "acq_sensor_target_pairs_materialized"',
    ]


def test_default_reporter_logs_each_lookup_chunk(source_db, postgres, sink_factory, caplog):
    runner = ETLRunner(source_db, SOURCE, sink_factory, postgres, JobConfig(scope="dp-01", batch_size=5))

    with caplog.at_level("INFO", logger="core.progress"):
        runner.run()

    lines = [r.getMessage() for r in caplog.records]
    assert "[mapping:entityIdToName] 28.6% remaining (5/7)" in lines
    assert "[mapping:entityIdToName] 0.0% remaining (7/7)" in lines


def test_streams_filtered_by_scope(source_db, postgres, sink_factory):
    ETLRunner(source_db, SOURCE, sink_factory, postgres, JobConfig(scope="dp-01")).run()

    assert source_db["losEvents"].counted == [{"designPoint": "dp-01"}]
    assert source_db["simulationMessages"].counted == [
        {"designPoint": "dp-01", "messageType": "SensorAcquisitionStateChange"}
    ]


def test_stage_failure_aborts_remaining_stages(source_db, postgres, failing_sink_factory):
    runner = ETLRunner(source_db, SOURCE, failing_sink_factory, postgres, JobConfig(scope="dp-01", batch_size=2))

    with pytest.raises(StatementExecutionError) as exc_info:
        runner.run()

    assert exc_info.value.context["scope"] == "dp-01"
    assert exc_info.value.context["stage"] == "mapping"
    # already committed batches stay, later stages never start
    assert len(failing_sink_factory.statements) == 2
    assert source_db["losEvents"].counted == []
    assert source_db["simulationMessages"].counted == []


def test_unexpected_error_is_wrapped(source_db, postgres, sink_factory):
    broken = MagicMock()
    broken.count_documents.side_effect = RuntimeError("boom")
    source_db["losEvents"] = broken

    with pytest.raises(ETLException) as exc_info:
        ETLRunner(source_db, SOURCE, sink_factory, postgres, JobConfig(scope="dp-01")).run()

    assert exc_info.value.context["stage"] == "los"
    assert isinstance(exc_info.value.original_exception, RuntimeError)


def test_view_refresh_requires_capable_dialect(source_db, sqlite, sink_factory):
    with pytest.raises(ConfigurationError):
        ETLRunner(source_db, SOURCE, sink_factory, sqlite, JobConfig(scope="dp-01"))

    assert sink_factory.statements == []


def test_view_refresh_can_be_disabled(source_db, sqlite, sink_factory):
    job = JobConfig(scope="dp-01", refresh_views=False)
    result = ETLRunner(source_db, SOURCE, sink_factory, sqlite, job).run()

    assert result.completed
    assert result.stage("views").status == StageStatus.SKIPPED
    assert not any(s.startswith("REFRESH") for s in sink_factory.statements)
    assert all("NULL" in s for s in sink_factory.statements)
