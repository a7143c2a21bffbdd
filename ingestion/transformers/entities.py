"""
Entity enrichment derived from an entity's source path.
"""

import re
from models.base import Force

_FORCE_PREFIXES = (
    ("blueforce", Force.BLUEFORCE),
    ("redforce", Force.REDFORCE),
)

_SEPARATORS = re.compile(r"[/\\]")


def classify_force(source: str) -> Force:
    """Case-insensitive prefix match on the source path"""
    lowered = source.lower()
    for prefix, force in _FORCE_PREFIXES:
        if lowered.startswith(prefix):
            return force
    return Force.OTHER


def short_name(source: str) -> str:
    """Final path segment after the last separator (the whole value if there is none)"""
    return _SEPARATORS.split(source)[-1]


def force_label(source: str) -> str:
    return classify_force(source).value
