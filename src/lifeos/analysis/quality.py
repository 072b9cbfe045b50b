"""Data-quality and overall confidence scoring.

The overall confidence of an analysis is the unweighted mean of:

- a data-quality score (recency, category variety, value consistency),
- a data-volume score that saturates at ``volume_saturation`` events,
- a fixed pattern-strength constant.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np

from lifeos.analysis.features import numeric_value
from lifeos.analysis.results import DataQuality, clamp
from lifeos.models.events import KNOWN_CATEGORY_COUNT, DataCategory, Event

DAY_MS = 24 * 60 * 60 * 1000


def consistency_score(values: Sequence[float]) -> float:
    """``max(0, 1 - coefficient of variation)`` of a series.

    The coefficient uses ``|mean|``; a zero mean scores 1 for a flat series
    and 0 otherwise.
    """
    arr = np.asarray(values, dtype=float)
    mean = abs(float(arr.mean()))
    std = float(arr.std())
    if mean == 0.0:
        return 1.0 if std == 0.0 else 0.0
    cv = std / mean
    if not math.isfinite(cv):
        return 0.0
    return max(0.0, 1.0 - cv)


def assess_data_quality(
    events: Sequence[Event],
    events_by_category: Mapping[DataCategory, Sequence[Event]],
    as_of: int,
    recency_window_days: int = 30,
) -> DataQuality:
    """Recency, variety and consistency components; all zero for no events."""
    if not events:
        return DataQuality()

    cutoff = as_of - recency_window_days * DAY_MS
    recent = sum(1 for e in events if e.timestamp > cutoff)

    scores = [
        consistency_score([numeric_value(e) for e in group])
        for group in events_by_category.values()
        if len(group) > 1
    ]

    return DataQuality(
        recency=clamp(recent / len(events)),
        variety=clamp(len(events_by_category) / KNOWN_CATEGORY_COUNT),
        consistency=clamp(sum(scores) / len(scores)) if scores else 0.5,
    )


def overall_confidence(
    quality: DataQuality,
    event_count: int,
    volume_saturation: int = 50,
    pattern_strength: float = 0.8,
) -> float:
    volume = min(1.0, event_count / volume_saturation)
    return clamp((quality.score + volume + pattern_strength) / 3)
