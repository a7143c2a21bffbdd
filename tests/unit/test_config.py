"""
Unit tests for configuration records, dialects and progress
"""

import pytest
from core.config import Settings
from core.database import build_sink_url
from core.dialects import get_dialect
from core.exceptions import ConfigurationError
from core.progress import ProgressState
from models.base import ConnectionPolicy
from schemas.config import JobConfig, SinkConfig, job_config_from_settings


class TestJobConfig:

    def test_defaults(self):
        job = JobConfig(scope="dp-01")
        assert job.batch_size == 100
        assert job.connection_policy == ConnectionPolicy.HOLD

    @pytest.mark.parametrize("batch_size", [0, -5])
    def test_non_positive_batch_size(self, batch_size):
        with pytest.raises(ConfigurationError) as exc_info:
            JobConfig(scope="dp-01", batch_size=batch_size)
        assert exc_info.value.context["setting"] == "ETL_BATCH_SIZE"

    def test_empty_scope(self):
        with pytest.raises(ConfigurationError):
            JobConfig(scope="  ")

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            JobConfig(scope="dp-01", connection_policy="sometimes")

    def test_reconnect_policy(self):
        job = JobConfig(scope="dp-01", connection_policy="reconnect", reconnect_every=50)
        assert job.connection_policy == ConnectionPolicy.RECONNECT
        assert job.reconnect_every == 50

    def test_from_settings_scope_override(self):
        settings = Settings(DESIGN_POINT="dp-from-env", ETL_BATCH_SIZE=25)

        assert job_config_from_settings(settings).scope == "dp-from-env"
        job = job_config_from_settings(settings, "dp-cli")
        assert job.scope == "dp-cli"
        assert job.batch_size == 25


class TestSinkConfig:

    def test_unsupported_dialect(self):
        with pytest.raises(ConfigurationError):
            SinkConfig(dialect="oracle", database="x")

    def test_postgres_url(self):
        config = SinkConfig(host="db", port=5433, user="etl", password="secret", database="sim")
        url = build_sink_url(config)

        assert url.drivername == "postgresql+psycopg"
        assert url.host == "db"
        assert url.port == 5433
        assert url.database == "sim"

    def test_sqlite_url_ignores_network_fields(self, tmp_path):
        config = SinkConfig(dialect="sqlite", database=str(tmp_path / "etl.db"))
        url = build_sink_url(config)

        assert url.drivername == "sqlite"
        assert url.host is None


class TestDialects:

    def test_lookup_is_case_insensitive(self):
        assert get_dialect("PostgreSQL").autoincrement_token == "DEFAULT"

    def test_only_postgres_refreshes_views(self):
        assert get_dialect("postgresql").supports_materialized_views
        assert not get_dialect("mysql").supports_materialized_views
        assert not get_dialect("sqlite").supports_materialized_views

    def test_identifier_quote_doubled(self):
        assert get_dialect("postgresql").quote_identifier('we"ird') == '"we""ird"'


class TestProgressState:

    def test_percent_remaining(self):
        state = ProgressState(total=8)
        state.advance(2)
        assert state.percent_remaining == 75.0

    def test_overrun_is_clamped(self):
        state = ProgressState(total=2)
        state.advance(3)
        assert state.remaining == 0
        assert state.percent_remaining == 0.0

    def test_unknown_total(self):
        state = ProgressState()
        state.advance()
        assert state.percent_remaining is None

    def test_monotonic(self):
        with pytest.raises(ValueError):
            ProgressState(total=1).advance(-1)
