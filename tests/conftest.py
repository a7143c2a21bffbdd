"""
Pytest configuration and fixtures
"""

import pytest
from core.dialects import get_dialect
from core.exceptions import StatementExecutionError


class RecordingSink:
    """Stands in for ingestion.loaders.sink.Sink and records what it is asked to run"""

    def __init__(self, factory):
        self.factory = factory
        self.is_open = False
        self.statements = []

    def open(self):
        self.is_open = True
        self.factory.opened += 1
        return self

    def execute(self, statement, table_name=None):
        assert self.is_open, "statement executed on a closed sink"
        if self.factory.fail_on is not None and len(self.factory.statements) + 1 == self.factory.fail_on:
            raise StatementExecutionError(
                "Relational store rejected statement",
                context={"operation": "EXECUTE", "table_name": table_name}
            )
        self.statements.append(statement)
        self.factory.statements.append(statement)

    def close(self):
        if self.is_open:
            self.factory.closed += 1
        self.is_open = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RecordingSinkFactory:
    """Sink factory whose sinks share one statement log"""

    def __init__(self, fail_on=None):
        self.statements = []
        self.sinks = []
        self.opened = 0
        self.closed = 0
        self.fail_on = fail_on

    def __call__(self):
        sink = RecordingSink(self)
        self.sinks.append(sink)
        return sink


class FakeCollection:
    """
    Minimal PyMongo collection double.

    ``documents`` is what every aggregate() returns unless ``responder`` is
    given, in which case responder(pipeline) decides.
    """

    def __init__(self, name, documents=None, responder=None, count=None):
        self.name = name
        self.documents = list(documents or [])
        self.responder = responder
        self._count = count
        self.pipelines = []
        self.counted = []

    def count_documents(self, match):
        self.counted.append(match)
        return self._count if self._count is not None else len(self.documents)

    def aggregate(self, pipeline, **kwargs):
        self.pipelines.append(pipeline)
        if self.responder is not None:
            return iter(self.responder(pipeline))
        return iter(self.documents)


@pytest.fixture
def postgres():
    return get_dialect("postgresql")


@pytest.fixture
def sqlite():
    return get_dialect("sqlite")


@pytest.fixture
def mysql():
    return get_dialect("mysql")


@pytest.fixture
def sink_factory():
    return RecordingSinkFactory()


@pytest.fixture
def failing_sink_factory():
    """Rejects the third statement it is asked to execute"""
    return RecordingSinkFactory(fail_on=3)


@pytest.fixture
def make_collection():
    return FakeCollection


def make_los_document(i, scope="dp-01"):
    return {
        "_id": f"los{i:05d}",
        "runId": "run-1",
        "runTime": "2024-01-15T10:00:00",
        "designPoint": scope,
        "iteration": 1,
        "time": 1000 * i + 250,
        "sensorId": f"sensor-{i % 3}",
        "targetId": f"target-{i % 5}",
        "hasLOS": i % 2 == 0,
    }


def make_acquisition_document(i, scope="dp-01"):
    return {
        "_id": f"acq{i:05d}",
        "runId": "run-1",
        "runTime": "2024-01-15T10:00:00",
        "designPoint": scope,
        "iteration": 2,
        "time": 500 * i,
        "messageType": "SensorAcquisitionStateChange",
        "receiverId": "rx-1",
        "senderId": "tx-1",
        "message": {
            "sensorId": "sensor-1",
            "entityId": "entity-9",
            "targetId": f"target-{i}",
            "detectionLevel": "DETECTED",
            "previousDetectionLevel": "NONE",
            "timeToDetection": 12.5,
        },
    }


@pytest.fixture
def los_documents():
    return [make_los_document(i) for i in range(250)]


@pytest.fixture
def acquisition_documents():
    return [make_acquisition_document(i) for i in range(4)]


@pytest.fixture
def entity_groups():
    """Seven distinct (entityId, source) groups as returned by $group"""
    sources = [
        "BlueForce/1ID",
        "blueforce/alpha/2ID",
        "RedForce/3ID",
        "redforce/4ID",
        "civilian/5",
        "Neutral\\6",
        "observer",
    ]
    return [
        {"_id": {"entityId": f"entity-{i}", "source": source}}
        for i, source in enumerate(sources)
    ]


@pytest.fixture
def los_document():
    return make_los_document


@pytest.fixture
def acquisition_document():
    return make_acquisition_document
