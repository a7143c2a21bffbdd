from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class Force(str, enum.Enum):
    """Force classification derived from an entity's source path"""
    BLUEFORCE = "BLUEFORCE"
    REDFORCE = "REDFORCE"
    OTHER = "OTHER"


class CellKind(str, enum.Enum):
    """Declared kind of a projected cell"""
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"  # whole number; integral doubles are narrowed to int
    BOOLEAN = "boolean"


class ConnectionPolicy(str, enum.Enum):
    """How a stream holds its sink connection"""
    HOLD = "hold"            # one connection for the whole stream
    RECONNECT = "reconnect"  # release and re-acquire every K rows


class StageStatus(str, enum.Enum):
    """ETL stage outcome"""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"
