"""
Scoped connections to the relational store.

A Sink is acquired, executes write-only statements, and is released on
every exit path. It never retries and never suppresses errors: driver
failures are translated into DatabaseConnectionError (cannot connect) or
StatementExecutionError (statement rejected) and propagate to the caller.
"""

from typing import Optional
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError, DBAPIError
from core.database import create_sink_engine
from core.exceptions import DatabaseConnectionError, StatementExecutionError
from schemas.config import SinkConfig
import logging

logger = logging.getLogger(__name__)

STATEMENT_PREVIEW_CHARS = 200

# Statements carry their values inline; pyformat drivers (psycopg, pymysql)
# must not see a parameter collection or they parse "%" inside literals.
RAW_STATEMENT_OPTIONS = {"no_parameters": True}


def _preview(statement: str) -> str:
    if len(statement) <= STATEMENT_PREVIEW_CHARS:
        return statement
    return statement[:STATEMENT_PREVIEW_CHARS] + "..."


class Sink:
    """
    One acquired connection.

    Each executed statement is committed on its own, so every statement is an
    independent unit of work.

    Usage:
        with Sink(engine) as sink:
            sink.execute("INSERT INTO ...")
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._conn: Optional[Connection] = None
        self.statements_executed = 0

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "Sink":
        if self._conn is not None:
            return self
        try:
            self._conn = self.engine.connect()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                "Could not connect to the relational store",
                context={"operation": "CONNECT"},
                original_exception=e
            )
        return self

    def execute(self, statement: str, table_name: Optional[str] = None) -> None:
        """Execute and commit one write-only statement"""
        if self._conn is None:
            raise DatabaseConnectionError(
                "Sink is not open",
                context={"operation": "EXECUTE", "table_name": table_name}
            )

        try:
            self._conn.exec_driver_sql(statement, execution_options=RAW_STATEMENT_OPTIONS)
            self._conn.commit()
        except SQLAlchemyError as e:
            self._rollback_quietly()
            context = {
                "operation": "EXECUTE",
                "table_name": table_name,
                "statement": _preview(statement),
            }
            if isinstance(e, DBAPIError) and e.connection_invalidated:
                raise DatabaseConnectionError(
                    "Connection to the relational store was lost",
                    context=context,
                    original_exception=e
                )
            raise StatementExecutionError(
                "Relational store rejected statement",
                context=context,
                original_exception=e
            )

        self.statements_executed += 1

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except SQLAlchemyError as e:
            logger.warning(f"Error while releasing sink connection: {e}")

    def _rollback_quietly(self) -> None:
        # The original failure is what the caller needs to see
        try:
            self._conn.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after failed statement also failed: {e}")

    def __enter__(self) -> "Sink":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


class SinkFactory:
    """Hands out new Sinks bound to one engine"""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_config(cls, config: SinkConfig) -> "SinkFactory":
        return cls(create_sink_engine(config))

    def __call__(self) -> Sink:
        return Sink(self.engine)

    def execute_once(self, statement: str, table_name: Optional[str] = None) -> None:
        """Acquire, execute one statement, release"""
        with self() as sink:
            sink.execute(statement, table_name=table_name)

    def dispose(self) -> None:
        self.engine.dispose()
