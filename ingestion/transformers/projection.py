"""
Project semi-structured documents onto flat rows.

A RowProjection is an ordered list of column specs. Each spec resolves one
cell from a document, the job scope, or a derivation over another field:

    Placeholder("id")                      -> None (autoincrement)
    FieldPath("sensorId", "event.sensor")  -> value at a dot-path
    Derived("time_s", "time", ms_to_s)     -> f(value at a dot-path)
    ScopeValue("designPoint")              -> the job's scope

Documents are only read through declared paths. A missing path, a null
value, a nested value where a scalar is declared, or a value of the wrong
kind raises MalformedRecordError for that document.
"""

import math
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from bson import ObjectId
from core.exceptions import MalformedRecordError
from ingestion.loaders.query_builder import Cell
from models.base import CellKind

_MISSING = object()


def get_path(document: Mapping[str, Any], path: str) -> Any:
    """Walk a dot-path through nested mappings; returns _MISSING if any segment is absent"""
    current: Any = document
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def document_id(document: Mapping[str, Any]) -> Optional[str]:
    value = document.get("_id") if isinstance(document, Mapping) else None
    return None if value is None else str(value)


def coerce(value: Any, kind: CellKind) -> Cell:
    """Coerce a source value to a cell of ``kind``; raises ValueError when it does not fit"""
    if value is None:
        raise ValueError("null value")

    if kind == CellKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        raise ValueError(f"expected boolean, got {type(value).__name__}")

    if kind in (CellKind.NUMBER, CellKind.INTEGER):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expected number, got {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"non-finite number {value!r}")
        if kind == CellKind.INTEGER and isinstance(value, float):
            # documents store whole numbers as doubles
            if not value.is_integer():
                raise ValueError(f"expected whole number, got {value!r}")
            return int(value)
        return value

    # TEXT
    if isinstance(value, (Mapping, list, tuple, bool)):
        raise ValueError(f"expected scalar text, got {type(value).__name__}")
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float, ObjectId)):
        return str(value)
    raise ValueError(f"expected text, got {type(value).__name__}")


class ColumnSpec:
    """One output column"""

    path: Optional[str] = None

    def __init__(self, column: str):
        self.column = column

    def resolve(self, document: Mapping[str, Any], scope: str) -> Cell:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.column!r})"


class Placeholder(ColumnSpec):
    """Primary key assigned by the store"""

    def resolve(self, document, scope):
        return None


class ScopeValue(ColumnSpec):
    """The job's designPoint"""

    def resolve(self, document, scope):
        return scope


class FieldPath(ColumnSpec):
    def __init__(self, column: str, path: str, kind: CellKind = CellKind.TEXT):
        super().__init__(column)
        self.path = path
        self.kind = kind

    def resolve(self, document, scope):
        return self._read(document, self.kind)

    def _read(self, document, kind: CellKind) -> Cell:
        value = get_path(document, self.path)
        if value is _MISSING:
            raise MalformedRecordError(
                f"Missing field {self.path!r}",
                context={
                    "source_id": document_id(document),
                    "field_path": self.path,
                    "column": self.column,
                }
            )
        try:
            return coerce(value, kind)
        except ValueError as e:
            raise MalformedRecordError(
                f"Malformed field {self.path!r}: {e}",
                context={
                    "source_id": document_id(document),
                    "field_path": self.path,
                    "column": self.column,
                },
                original_exception=e
            )


class Derived(FieldPath):
    """
    A cell computed from another field.

    ``source_kind`` is the kind the input must have; ``func`` receives the
    coerced input and must return a cell.
    """

    def __init__(
        self,
        column: str,
        path: str,
        func: Callable[[Cell], Cell],
        source_kind: CellKind = CellKind.TEXT
    ):
        super().__init__(column, path, source_kind)
        self.func = func

    def resolve(self, document, scope):
        return self.func(self._read(document, self.kind))


class RowProjection:
    """Ordered mapping from declared document paths to row positions"""

    def __init__(self, columns: Sequence[ColumnSpec]):
        names = [c.column for c in columns]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate columns in projection: {names}")
        self.columns: Tuple[ColumnSpec, ...] = tuple(columns)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.column for c in self.columns)

    def source_fields(self) -> Dict[str, int]:
        """MongoDB $project document covering every declared path"""
        fields = {c.path: 1 for c in self.columns if c.path}
        fields.setdefault("_id", 1)
        return fields

    def project(self, document: Mapping[str, Any], scope: str) -> List[Cell]:
        return [spec.resolve(document, scope) for spec in self.columns]
