"""Cyclical pattern detection.

Buckets a category's readings by hour of day, day of week and day of month,
averages each bucket, and scores how strongly the averages vary relative to
their mean. A strong score means the value depends on where in the cycle the
reading falls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

import numpy as np

from lifeos.analysis.features import FeatureExtractor, TemporalFeatures, numeric_value
from lifeos.analysis.results import Cycle, CyclePeriod, clamp
from lifeos.models.events import Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PeriodLayout:
    period: CyclePeriod
    buckets: int
    bucket_of: Callable[[TemporalFeatures], int]


_PERIODS = (
    _PeriodLayout(CyclePeriod.DAILY, 24, lambda t: t.hour_of_day),
    _PeriodLayout(CyclePeriod.WEEKLY, 7, lambda t: t.day_of_week),
    _PeriodLayout(CyclePeriod.MONTHLY, 31, lambda t: t.day_of_month - 1),
)

_WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class CycleProfile:
    """Bucket averages and periodicity score for one period type."""

    period: CyclePeriod
    averages: List[float]
    strength: float
    peak_bucket: int
    trough_bucket: int


def score_profile(averages: Sequence[float]) -> float:
    """``variance / (mean² + 1)`` clamped to [0, 1]."""
    if len(averages) == 0:
        return 0.0
    arr = np.asarray(averages, dtype=float)
    mean = float(arr.mean())
    variance = float(((arr - mean) ** 2).mean())
    return clamp(variance / (mean * mean + 1.0))


class CycleDetector:
    """Detects daily, weekly and monthly cycles within one category."""

    def __init__(self, extractor: FeatureExtractor, min_strength: float = 0.6):
        self.extractor = extractor
        self.min_strength = min_strength

    def profiles(self, events: Sequence[Event]) -> List[CycleProfile]:
        """Bucket profiles for all three period types."""
        temporal = [self.extractor.temporal_features(e.timestamp, e.event_id) for e in events]
        values = [numeric_value(e) for e in events]

        profiles = []
        for layout in _PERIODS:
            sums = np.zeros(layout.buckets)
            counts = np.zeros(layout.buckets)
            for features, value in zip(temporal, values):
                bucket = layout.bucket_of(features)
                sums[bucket] += value
                counts[bucket] += 1

            averages = np.divide(sums, counts, out=np.zeros(layout.buckets), where=counts > 0)
            profiles.append(
                CycleProfile(
                    period=layout.period,
                    averages=[float(v) for v in averages],
                    strength=score_profile(averages),
                    peak_bucket=int(np.argmax(averages)),
                    trough_bucket=int(np.argmin(averages)),
                )
            )
        return profiles

    def detect(self, events: Sequence[Event]) -> List[Cycle]:
        """Cycles whose strength exceeds the reporting threshold."""
        if not events:
            return []

        category = events[0].category
        cycles = []
        for profile in self.profiles(events):
            if profile.strength <= self.min_strength:
                continue
            cycles.append(
                Cycle(
                    category=category,
                    period=profile.period,
                    strength=profile.strength,
                    profile=profile.averages,
                    peak_bucket=profile.peak_bucket,
                    trough_bucket=profile.trough_bucket,
                    description=describe_cycle(category.value, profile),
                )
            )

        if cycles:
            logger.debug(
                f"{category.value}: {len(cycles)} cycle(s) "
                f"({', '.join(c.period.value for c in cycles)})"
            )
        return cycles


def describe_cycle(category: str, profile: CycleProfile) -> str:
    if profile.period is CyclePeriod.DAILY:
        peak = f"around {profile.peak_bucket:02d}:00"
        trough = f"around {profile.trough_bucket:02d}:00"
    elif profile.period is CyclePeriod.WEEKLY:
        peak = f"on {_WEEKDAY_NAMES[profile.peak_bucket]}"
        trough = f"on {_WEEKDAY_NAMES[profile.trough_bucket]}"
    else:
        peak = f"on day {profile.peak_bucket + 1}"
        trough = f"on day {profile.trough_bucket + 1}"
    return (
        f"Your {category} data follows a {profile.period.value} rhythm, "
        f"peaking {peak} and lowest {trough}"
    )
