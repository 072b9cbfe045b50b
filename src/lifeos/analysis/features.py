"""Feature extraction for personal-data events.

Turns one ``Event`` into a ``FeatureVector``: numeric fields with their
normalized values and derived magnitudes, categorical fields, and calendar
features computed in a configurable timezone (UTC by default).

Example:
    >>> extractor = FeatureExtractor()
    >>> vector = extractor.extract(event)
    >>> vector.temporal.time_of_day
    <TimeOfDay.MORNING: 'morning'>
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from lifeos.configuration.settings import DEFAULT_FEATURE_RANGES, DEFAULT_RANGE
from lifeos.errors import FeatureExtractionError
from lifeos.models.events import DataCategory, Event, is_number, is_numeric

logger = logging.getLogger(__name__)


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        if 6 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 21:
            return cls.EVENING
        return cls.NIGHT


@dataclass(frozen=True)
class TemporalFeatures:
    """Calendar attributes of an event timestamp.

    Attributes:
        hour_of_day: 0-23
        day_of_week: 0-6, Sunday is 0
        day_of_month: 1-31
        month: 0-11
        season: 0-3, quarter of the calendar year
        is_weekend: Saturday or Sunday
        time_of_day: Coarse part of the day
    """

    hour_of_day: int
    day_of_week: int
    day_of_month: int
    month: int
    season: int
    is_weekend: bool
    time_of_day: TimeOfDay


@dataclass(frozen=True)
class NumericalFeature:
    name: str
    value: float
    normalized: float


@dataclass(frozen=True)
class CategoricalFeature:
    name: str
    value: object


@dataclass
class FeatureVector:
    """Features derived from a single event."""

    timestamp: int
    category: DataCategory
    source: str
    temporal: TemporalFeatures
    numerical_features: List[NumericalFeature] = field(default_factory=list)
    categorical_features: List[CategoricalFeature] = field(default_factory=list)
    value_features: Dict[str, float] = field(default_factory=dict)

    def normalized(self, names: Sequence[str]) -> List[float]:
        """Normalized values for ``names`` in order, 0.0 where absent."""
        lookup = {f.name: f.normalized for f in self.numerical_features}
        return [lookup.get(name, 0.0) for name in names]


def numeric_value(event: Event) -> float:
    """Single numeric reading of an event.

    The value itself when it is a number, the mean of the numeric fields for a
    record, 0.0 when there are none.
    """
    values = list(event.numeric_fields().values())
    if not values:
        return 0.0
    return sum(values) / len(values)


def derive_value_features(name: str, value: float) -> Dict[str, float]:
    """Magnitude features of one numeric field."""
    return {
        f"{name}_abs": abs(value),
        f"{name}_log": math.log(value) if value > 0 else 0.0,
        f"{name}_sqrt": math.sqrt(abs(value)),
    }


class FeatureExtractor:
    """Converts events into feature vectors.

    Pure and deterministic; the only failure mode is a malformed timestamp.
    """

    def __init__(
        self,
        feature_ranges: Optional[Mapping[str, Sequence[float]]] = None,
        timezone: str = "UTC",
        default_range: Sequence[float] = DEFAULT_RANGE,
    ):
        """Initialize feature extractor.

        Args:
            feature_ranges: Per-field (min, max) used for normalization
            timezone: IANA timezone used for calendar features
            default_range: Range for fields missing from ``feature_ranges``
        """
        ranges = DEFAULT_FEATURE_RANGES if feature_ranges is None else feature_ranges
        self.feature_ranges = {name: (float(lo), float(hi)) for name, (lo, hi) in ranges.items()}
        self.default_range = (float(default_range[0]), float(default_range[1]))
        self.timezone = timezone
        self._tz = dt_timezone.utc if timezone == "UTC" else ZoneInfo(timezone)

    def extract(self, event: Event) -> FeatureVector:
        """Extract the full feature vector of ``event``."""
        vector = FeatureVector(
            timestamp=event.timestamp,
            category=event.category,
            source=event.source,
            temporal=self.temporal_features(event.timestamp, event_id=event.event_id),
        )

        if is_numeric(event.value):
            items = [("value", event.value)]
        elif isinstance(event.value, Mapping):
            items = list(event.value.items())
        else:
            items = []

        for name, raw in items:
            if is_numeric(raw):
                value = float(raw)
                vector.numerical_features.append(
                    NumericalFeature(name=name, value=value, normalized=self.normalize(value, name))
                )
                vector.value_features.update(derive_value_features(name, value))
            elif not is_number(raw):
                vector.categorical_features.append(CategoricalFeature(name=name, value=raw))

        return vector

    def temporal_features(self, timestamp: object, event_id: Optional[str] = None) -> TemporalFeatures:
        """Calendar features of an epoch-millis timestamp.

        Raises:
            FeatureExtractionError: NaN, negative, non-numeric or out of range
        """
        moment = self._to_datetime(timestamp, event_id)
        day_of_week = (moment.weekday() + 1) % 7
        return TemporalFeatures(
            hour_of_day=moment.hour,
            day_of_week=day_of_week,
            day_of_month=moment.day,
            month=moment.month - 1,
            season=(moment.month - 1) // 3,
            is_weekend=day_of_week in (0, 6),
            time_of_day=TimeOfDay.from_hour(moment.hour),
        )

    def normalize(self, value: float, name: str) -> float:
        """Scale ``value`` into its field range; 0.5 for a degenerate range."""
        low, high = self.feature_ranges.get(name, self.default_range)
        if low == high:
            return 0.5
        return (value - low) / (high - low)

    def _to_datetime(self, timestamp: object, event_id: Optional[str]) -> datetime:
        if not is_numeric(timestamp):
            raise FeatureExtractionError(
                f"Timestamp must be epoch milliseconds, got {type(timestamp).__name__}",
                event_id=event_id,
                timestamp=timestamp,
            )
        millis = float(timestamp)
        if math.isnan(millis) or millis < 0:
            raise FeatureExtractionError(
                f"Malformed timestamp {timestamp!r}",
                event_id=event_id,
                timestamp=timestamp,
            )
        try:
            return datetime.fromtimestamp(millis / 1000.0, tz=self._tz)
        except (OverflowError, OSError, ValueError) as exc:
            raise FeatureExtractionError(
                f"Timestamp {timestamp!r} is outside the supported calendar range",
                event_id=event_id,
                timestamp=timestamp,
            ) from exc
