"""
Lazy document extraction from a MongoDB collection.

Documents are pulled through a server-side cursor one at a time; the full
result set is never materialized. A single count query taken before
iteration gives an advisory total for progress display.
"""

from typing import Any, Dict, Iterator, Optional
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from core.exceptions import ExtractionError
import logging

logger = logging.getLogger(__name__)


class CursorExtractor:
    """
    Extract documents matching a filter, projected to declared fields.

    The sequence is finite and non-restartable: iterating a second time
    raises ExtractionError instead of silently re-reading the source.
    Order is whatever order the store returns.
    """

    def __init__(
        self,
        collection: Collection,
        match: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None,
        cursor_batch_size: Optional[int] = None
    ):
        self.collection = collection
        self.match = match
        self.projection = projection or {}
        self.cursor_batch_size = cursor_batch_size
        self.num_records: Optional[int] = None
        self._consumed = False

    @property
    def source_name(self) -> str:
        return getattr(self.collection, "name", str(self.collection))

    def pipeline(self):
        stages = [{"$match": self.match}]
        if self.projection:
            stages.append({"$project": self.projection})
        return stages

    def count(self) -> int:
        """Point-in-time count of matching documents (advisory; may go stale)"""
        try:
            self.num_records = self.collection.count_documents(self.match)
        except PyMongoError as e:
            raise ExtractionError(
                "Failed to count source documents",
                context={"collection": self.source_name, "filter": self.match},
                original_exception=e
            )
        logger.info(f"{self.source_name}: {self.num_records} documents match {self.match}")
        return self.num_records

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if self._consumed:
            raise ExtractionError(
                "Cursor extractor cannot be restarted",
                context={"collection": self.source_name}
            )
        self._consumed = True
        return self._documents()

    def _documents(self) -> Iterator[Dict[str, Any]]:
        kwargs = {"allowDiskUse": True}
        if self.cursor_batch_size:
            kwargs["batchSize"] = self.cursor_batch_size

        try:
            cursor = self.collection.aggregate(self.pipeline(), **kwargs)
            try:
                for document in cursor:
                    yield document
            finally:
                close = getattr(cursor, "close", None)
                if close is not None:
                    close()
        except PyMongoError as e:
            raise ExtractionError(
                "Failed to read source documents",
                context={"collection": self.source_name, "filter": self.match},
                original_exception=e
            )
