"""
Build multi-row INSERT statements from untyped tabular rows.

A row is a sequence of cells, each one of:
    None   -> rendered as the table's autoincrement token (unquoted)
    str    -> quoted literal, embedded delimiters doubled
    int/float -> quoted literal of the number's shortest round-trip text
    bool   -> quoted boolean literal of the dialect

None never means "missing value": it is reserved for primary keys assigned
by the store.
"""

import math
from typing import Any, Optional, Sequence, Tuple, Union
from pydantic import BaseModel, ConfigDict, field_validator
from core.dialects import SQLDialect
from core.exceptions import ColumnArityError, EmptyBatchError, UnsupportedCellError

Cell = Union[None, str, int, float, bool]
Row = Sequence[Cell]


class TargetTable(BaseModel):
    """Destination of positional INSERT statements"""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: Tuple[str, ...]
    dialect: SQLDialect
    autoincrement_token: Optional[str] = None

    @field_validator("columns")
    @classmethod
    def has_columns(cls, v):
        if not v:
            raise ValueError("a target table needs at least one column")
        return v

    @classmethod
    def from_model(cls, model: Any, dialect: SQLDialect) -> "TargetTable":
        """Take name and column order from a SQLAlchemy declarative model"""
        table = model.__table__
        return cls(
            name=table.name,
            columns=tuple(c.name for c in table.columns),
            dialect=dialect,
        )

    @property
    def token(self) -> str:
        return self.autoincrement_token or self.dialect.autoincrement_token

    @property
    def width(self) -> int:
        return len(self.columns)


def escape_text(value: str, dialect: SQLDialect) -> str:
    """Double the literal delimiter (and backslashes where the dialect treats them as escapes)"""
    if dialect.escape_backslash:
        value = value.replace("\\", "\\\\")
    return value.replace("'", "''")


def render_literal(value: Cell, table: TargetTable) -> str:
    """Render one cell as SQL text"""
    if value is None:
        return table.token

    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        true_lit, false_lit = table.dialect.boolean_literals
        text = true_lit if value else false_lit
    elif isinstance(value, int):
        text = str(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedCellError(
                "Non-finite numbers cannot be written",
                context={"table_name": table.name, "value": repr(value)}
            )
        text = repr(value)
    elif isinstance(value, str):
        text = escape_text(value, table.dialect)
    else:
        raise UnsupportedCellError(
            f"Unsupported cell type {type(value).__name__}",
            context={"table_name": table.name, "value": repr(value)}
        )

    return f"'{text}'"


def render_row(row: Row, table: TargetTable) -> str:
    return "(" + ",".join(render_literal(cell, table) for cell in row) + ")"


def build_insert(rows: Sequence[Row], table: TargetTable) -> str:
    """
    Build ``INSERT INTO <table> VALUES (r1),(r2),...,(rn)``.

    Raises:
        EmptyBatchError: rows is empty
        ColumnArityError: a row's length differs from the table's column count
        UnsupportedCellError: a cell is outside the supported cell types
    """
    if not rows:
        raise EmptyBatchError(
            "Cannot build an INSERT for an empty batch",
            context={"table_name": table.name}
        )

    for index, row in enumerate(rows):
        if len(row) != table.width:
            raise ColumnArityError(
                f"Row has {len(row)} cells but {table.name} has {table.width} columns",
                context={
                    "table_name": table.name,
                    "row_index": index,
                    "expected": table.width,
                    "actual": len(row),
                }
            )

    values = ",".join(render_row(row, table) for row in rows)
    return f"INSERT INTO {table.dialect.quote_identifier(table.name)} VALUES {values}"
