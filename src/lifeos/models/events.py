"""Personal-data event models consumed by the pattern engine.

Events are timestamped readings from the user's life (health metrics,
spending entries, task logs, ...). They arrive from the storage layer already
deduplicated, belong to exactly one user, and are never mutated by the engine.

The set of data categories is closed: every detector consumes
``DataCategory`` rather than string literals, and an unknown category fails
hard instead of being silently ignored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union

from lifeos.errors import InvalidBatchError, UnknownCategoryError


FieldValue = Union[float, int, str, bool]
EventValue = Union[float, int, Mapping[str, FieldValue]]


class DataCategory(str, Enum):
    """Domain an event belongs to."""

    HEALTH = "health"
    FINANCE = "finance"
    PRODUCTIVITY = "productivity"
    RELATIONSHIPS = "relationships"
    LEARNING = "learning"
    CAREER = "career"

    @classmethod
    def parse(cls, raw: Any) -> "DataCategory":
        """Resolve a category, raising ``UnknownCategoryError`` when unknown."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise UnknownCategoryError(raw) from None

    @property
    def ordinal(self) -> int:
        """Stable position of the category in the enumeration."""
        return list(type(self)).index(self)


KNOWN_CATEGORY_COUNT = len(DataCategory)


def is_number(value: Any) -> bool:
    """Return True for int/float values (booleans are categorical)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_numeric(value: Any) -> bool:
    """Return True for finite numbers; NaN and infinities count as missing."""
    return is_number(value) and math.isfinite(value)


@dataclass(frozen=True)
class Event:
    """A single timestamped reading in the user's personal data stream.

    Attributes:
        event_id: Identifier assigned by the storage layer
        category: Domain of the reading
        source: Where the reading came from (e.g. 'fitbit', 'manual')
        value: Either a bare number or a record of named numeric and
            categorical fields (e.g. ``{"steps": 8000, "mood": "good"}``)
        timestamp: Epoch milliseconds
    """

    event_id: str
    category: DataCategory
    source: str = ""
    value: EventValue = field(default_factory=dict)
    timestamp: int = 0

    def __post_init__(self):
        """Validate required fields."""
        if not self.event_id:
            raise ValueError("event_id is required for Event")
        if not isinstance(self.category, DataCategory):
            object.__setattr__(self, "category", DataCategory.parse(self.category))

    def numeric_fields(self) -> Dict[str, float]:
        """Numeric fields of the value record, a bare number maps to 'value'."""
        if is_numeric(self.value):
            return {"value": float(self.value)}
        if isinstance(self.value, Mapping):
            return {
                name: float(raw)
                for name, raw in self.value.items()
                if is_numeric(raw)
            }
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        value = dict(self.value) if isinstance(self.value, Mapping) else self.value
        return {
            "id": self.event_id,
            "dataType": self.category.value,
            "source": self.source,
            "value": value,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        """Create from a storage-layer record.

        Accepts both camelCase (``id``, ``dataType``) and snake_case
        (``event_id``, ``category``) keys.
        """
        if not isinstance(data, Mapping):
            raise InvalidBatchError(
                f"Event record must be a mapping, got {type(data).__name__}"
            )

        event_id = data.get("id", data.get("event_id", data.get("_id")))
        category = data.get("dataType", data.get("category"))
        if event_id in (None, "") or category is None:
            raise InvalidBatchError(
                "Event record requires an id and a dataType",
                details={"keys": sorted(str(k) for k in data.keys())},
            )

        value = data.get("value", {})
        if not (is_number(value) or isinstance(value, Mapping)):
            raise InvalidBatchError(
                f"Event {event_id} value must be a number or a mapping",
                details={"event_id": str(event_id)},
            )

        return cls(
            event_id=str(event_id),
            category=DataCategory.parse(category),
            source=str(data.get("source", "")),
            value=value,
            timestamp=data.get("timestamp", 0),
        )
