"""Input data models for the pattern engine.

Key Concepts:
- **Events**: Timestamped personal-data readings grouped into a closed set of
  data categories.
- **Insight types**: The kinds of finding the engine reports, shared with the
  learning profile.
"""

from .events import (
    KNOWN_CATEGORY_COUNT,
    DataCategory,
    Event,
    is_number,
    is_numeric,
)
from .insights import InsightType

__all__ = [
    "KNOWN_CATEGORY_COUNT",
    "DataCategory",
    "Event",
    "InsightType",
    "is_number",
    "is_numeric",
]
