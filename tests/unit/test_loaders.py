"""
Unit tests for the batch loader and sink
"""

import math
import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError, ProgrammingError
from core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    StatementExecutionError,
)
from core.progress import ProgressReporter
from ingestion.loaders.batch_loader import BatchLoader, chunked
from ingestion.loaders.query_builder import TargetTable
from ingestion.loaders.sink import Sink, SinkFactory


class CollectingReporter(ProgressReporter):
    def __init__(self):
        self.percentages = []

    def report(self, stage, state):
        self.percentages.append(state.percent_remaining)


@pytest.fixture
def table(postgres):
    return TargetTable(name="items", columns=("id", "label"), dialect=postgres)


def make_rows(n):
    return [[None, f"item-{i}"] for i in range(n)]


def tuples_in(statement):
    return statement.split(" VALUES ", 1)[1].count("),(") + 1


class TestBatchLoader:
    """Test batch partitioning"""

    @pytest.mark.parametrize("n,batch_size", [(1, 1), (10, 3), (9, 3), (250, 100), (5, 50)])
    def test_statement_count_and_last_batch(self, table, sink_factory, n, batch_size):
        loader = BatchLoader()
        issued = loader.write_all(make_rows(n), table, batch_size, sink_factory)

        assert issued == math.ceil(n / batch_size)
        assert len(sink_factory.statements) == issued
        expected_last = n % batch_size or batch_size
        assert tuples_in(sink_factory.statements[-1]) == expected_last
        assert sum(tuples_in(s) for s in sink_factory.statements) == n

    def test_zero_rows_is_noop(self, table, sink_factory):
        assert BatchLoader().write_all([], table, 10, sink_factory) == 0
        assert sink_factory.statements == []
        assert sink_factory.opened == 0

    def test_connection_per_batch(self, table, sink_factory):
        BatchLoader().write_all(make_rows(7), table, 3, sink_factory)

        assert sink_factory.opened == 3
        assert sink_factory.closed == 3
        assert all(len(sink.statements) == 1 for sink in sink_factory.sinks)

    @pytest.mark.parametrize("batch_size", [0, -1, 2.5, "10", True])
    def test_invalid_batch_size_rejected_before_writing(self, table, sink_factory, batch_size):
        with pytest.raises(ConfigurationError):
            BatchLoader().write_all(make_rows(3), table, batch_size, sink_factory)
        assert sink_factory.opened == 0

    def test_progress_reported_as_percent_remaining(self, table, sink_factory):
        reporter = CollectingReporter()
        BatchLoader(reporter).write_all(make_rows(4), table, 2, sink_factory)

        assert reporter.percentages == [50.0, 0.0]

    def test_failure_aborts_remaining_batches(self, table, failing_sink_factory):
        with pytest.raises(StatementExecutionError):
            BatchLoader().write_all(make_rows(10), table, 2, failing_sink_factory)

        # two batches committed, third rejected, nothing after it
        assert len(failing_sink_factory.statements) == 2
        assert failing_sink_factory.opened == failing_sink_factory.closed == 3

    def test_accepts_generators(self, table, sink_factory):
        rows = ([None, f"g{i}"] for i in range(5))
        assert BatchLoader().write_all(rows, table, 2, sink_factory) == 3

    def test_chunked(self):
        assert [len(c) for c in chunked(range(7), 3)] == [3, 3, 1]
        assert list(chunked([], 3)) == []


class TestSink:
    """Test sink lifecycle and error translation"""

    def test_execute_commits_and_releases(self):
        engine = MagicMock()
        conn = engine.connect.return_value

        with Sink(engine) as sink:
            sink.execute("INSERT INTO x VALUES ('1')")
            assert sink.statements_executed == 1

        conn.exec_driver_sql.assert_called_once_with(
            "INSERT INTO x VALUES ('1')", execution_options={"no_parameters": True}
        )
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    def test_statement_sent_without_parameter_collection(self):
        engine = MagicMock()
        conn = engine.connect.return_value

        with Sink(engine) as sink:
            sink.execute("INSERT INTO x VALUES ('100% LOS','50%s')")

        args, kwargs = conn.exec_driver_sql.call_args
        assert args == ("INSERT INTO x VALUES ('100% LOS','50%s')",)
        assert kwargs["execution_options"]["no_parameters"] is True

    def test_connect_failure(self):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("connect", {}, Exception("refused"))

        with pytest.raises(DatabaseConnectionError) as exc_info:
            with Sink(engine):
                pass

        assert exc_info.value.context["operation"] == "CONNECT"

    def test_rejected_statement_releases_connection(self):
        engine = MagicMock()
        conn = engine.connect.return_value
        conn.exec_driver_sql.side_effect = ProgrammingError("INSERT", {}, Exception("syntax error"))

        with pytest.raises(StatementExecutionError) as exc_info:
            with Sink(engine) as sink:
                sink.execute("INSERT INTO nowhere VALUES ('1')", table_name="nowhere")

        assert exc_info.value.context["table_name"] == "nowhere"
        conn.rollback.assert_called_once()
        conn.close.assert_called_once()
        conn.commit.assert_not_called()

    def test_lost_connection_is_connection_error(self):
        engine = MagicMock()
        conn = engine.connect.return_value
        conn.exec_driver_sql.side_effect = OperationalError(
            "INSERT", {}, Exception("server closed the connection"), connection_invalidated=True
        )

        with pytest.raises(DatabaseConnectionError):
            with Sink(engine) as sink:
                sink.execute("INSERT INTO x VALUES ('1')")

    def test_execute_on_closed_sink(self):
        with pytest.raises(DatabaseConnectionError):
            Sink(MagicMock()).execute("INSERT INTO x VALUES ('1')")

    def test_factory_execute_once(self):
        engine = MagicMock()
        conn = engine.connect.return_value

        SinkFactory(engine).execute_once("REFRESH MATERIALIZED VIEW v")

        engine.connect.assert_called_once()
        conn.exec_driver_sql.assert_called_once_with("REFRESH MATERIALIZED VIEW v")
        conn.close.assert_called_once()
