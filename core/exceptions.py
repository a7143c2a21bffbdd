"""
Custom exceptions for the event-log ETL with structured error context.

Every exception carries a ``context`` dictionary so that a failure can be
reported together with the scope, stage and record it concerns.

Exception Hierarchy:
    ETLException (base)
    ├── ConfigurationError
    ├── ExtractionError
    ├── TransformationError
    │   └── MalformedRecordError
    └── LoadError
        ├── QueryBuildError
        │   ├── EmptyBatchError
        │   ├── ColumnArityError
        │   └── UnsupportedCellError
        └── DatabaseError
            ├── DatabaseConnectionError
            └── StatementExecutionError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (scope, stage, record id, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(ETLException):
    """
    Raised when job configuration is invalid.

    Always raised before any read or write is attempted. Context should include:
        - setting: Name of the offending setting
        - value: The rejected value
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """
    Raised when the document store cannot be read.

    Context should include:
        - collection: Name of the source collection
        - filter: The filter that was being evaluated
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class MalformedRecordError(TransformationError):
    """
    Raised when a single source document cannot be projected onto a row.

    Recoverable: pipelines skip the document and count it as dropped.

    Context should include:
        - source_id: Identifier of the source document (if known)
        - field_path: The declared path that was missing or malformed
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class QueryBuildError(LoadError):
    """Base exception for statements that cannot be built."""
    pass


class EmptyBatchError(QueryBuildError):
    """Raised when an INSERT is requested for zero rows."""
    pass


class ColumnArityError(QueryBuildError):
    """
    Raised when a row's cell count disagrees with its target table.

    Context should include:
        - table_name: Target table
        - row_index: Position of the offending row in the batch
        - expected / actual: Column and cell counts
    """
    pass


class UnsupportedCellError(QueryBuildError):
    """Raised when a cell is not one of Null, Text, Number or Boolean."""
    pass


class DatabaseError(LoadError):
    """
    Base exception for relational store failures.

    Context should include:
        - operation: The operation that failed (CONNECT, EXECUTE)
        - table_name: Name of the table (if known)
    """
    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when the relational store is unreachable or rejects credentials."""
    pass


class StatementExecutionError(DatabaseError):
    """Raised when the relational store rejects a built statement."""
    pass
