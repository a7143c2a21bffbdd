"""
Recompute materialized aggregates after a scope's writes complete.
"""

from typing import Callable, List, Optional, Sequence
from core.dialects import SQLDialect
from core.exceptions import ConfigurationError
from ingestion.loaders.sink import Sink
import logging

logger = logging.getLogger(__name__)

MATERIALIZED_VIEWS = (
    "los_sensor_target_pairs_materialized",
    "acq_sensor_target_pairs_materialized",
)


class ViewRefresher:
    """Issue the dialect's refresh command for each view, one sink per view"""

    def __init__(
        self,
        dialect: SQLDialect,
        sink_factory: Callable[[], Sink],
        views: Optional[Sequence[str]] = None
    ):
        if not dialect.supports_materialized_views:
            raise ConfigurationError(
                f"Dialect {dialect.name} cannot refresh materialized views",
                context={"setting": "REFRESH_VIEWS", "dialect": dialect.name}
            )
        self.dialect = dialect
        self.sink_factory = sink_factory
        self.views = tuple(views) if views is not None else MATERIALIZED_VIEWS

    def statement(self, view: str) -> str:
        return self.dialect.refresh_view_command.format(
            view=self.dialect.quote_identifier(view)
        )

    def refresh(self) -> List[str]:
        refreshed = []
        for view in self.views:
            logger.info(f"Refreshing materialized view {view}")
            with self.sink_factory() as sink:
                sink.execute(self.statement(view), table_name=view)
            refreshed.append(view)
        return refreshed
