"""
SQL dialect records for the supported relational stores.

A dialect decides everything engine-specific about the statements this
package emits: the autoincrement token, how booleans and string literals
are rendered, how identifiers are quoted and whether materialized views
can be refreshed.
"""

from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from core.exceptions import ConfigurationError


class SQLDialect(BaseModel):
    """Engine-specific rendering rules"""

    model_config = ConfigDict(frozen=True)

    name: str
    driver: str
    autoincrement_token: str
    boolean_literals: Tuple[str, str]  # (true, false)
    identifier_quote: str
    escape_backslash: bool = False
    refresh_view_command: Optional[str] = None

    @property
    def supports_materialized_views(self) -> bool:
        return self.refresh_view_command is not None

    def quote_identifier(self, name: str) -> str:
        q = self.identifier_quote
        return f"{q}{name.replace(q, q + q)}{q}"


DIALECTS: Dict[str, SQLDialect] = {
    "postgresql": SQLDialect(
        name="postgresql",
        driver="postgresql+psycopg",
        autoincrement_token="DEFAULT",
        boolean_literals=("true", "false"),
        identifier_quote='"',
        refresh_view_command="REFRESH MATERIALIZED VIEW {view}",
    ),
    "mysql": SQLDialect(
        name="mysql",
        driver="mysql+pymysql",
        autoincrement_token="NULL",
        boolean_literals=("1", "0"),
        identifier_quote="`",
        escape_backslash=True,
    ),
    "sqlite": SQLDialect(
        name="sqlite",
        driver="sqlite",
        autoincrement_token="NULL",
        boolean_literals=("1", "0"),
        identifier_quote='"',
    ),
}


def get_dialect(name: str) -> SQLDialect:
    """Look up a dialect by name, raising ConfigurationError if unsupported"""
    dialect = DIALECTS.get((name or "").lower())
    if dialect is None:
        raise ConfigurationError(
            f"Unsupported SQL dialect: {name!r}",
            context={
                "setting": "SINK_DIALECT",
                "value": name,
                "supported": ", ".join(sorted(DIALECTS)),
            }
        )
    return dialect
