"""Cross-domain correlation detection.

Detects linear association between the readings of two data categories, e.g.
"sleep readings and productivity logs rise and fall together". Readings are
paired by timestamp proximity before the Pearson coefficient is computed, so
only categories observed around the same times can correlate.

Example:
    >>> detector = CorrelationDetector()
    >>> for correlation in detector.detect(events_by_category):
    ...     print(correlation.description)
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from itertools import combinations
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from lifeos.analysis.features import numeric_value
from lifeos.analysis.results import Correlation, CorrelationDirection, clamp
from lifeos.analysis.trends import sort_by_time
from lifeos.models.events import DataCategory, Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlignedPair:
    """Readings of two categories observed close together in time."""

    timestamp: int
    value_a: float
    value_b: float


def align_by_timestamp(
    events_a: Sequence[Event],
    events_b: Sequence[Event],
    tolerance_ms: int = 3_600_000,
) -> List[AlignedPair]:
    """Pair each event of ``events_a`` with the nearest event of ``events_b``.

    Pairs further apart than ``tolerance_ms`` (exclusive) are dropped. On equal
    distance the earlier candidate wins. A ``events_b`` event may be matched
    by several ``events_a`` events.
    """
    ordered_b = sort_by_time(events_b)
    times_b = [e.timestamp for e in ordered_b]
    aligned: List[AlignedPair] = []

    for event in events_a:
        index = bisect.bisect_left(times_b, event.timestamp)
        best: Optional[Event] = None
        best_gap = None
        for candidate in (index - 1, index):
            if 0 <= candidate < len(ordered_b):
                gap = abs(event.timestamp - times_b[candidate])
                if best_gap is None or gap < best_gap:
                    best, best_gap = ordered_b[candidate], gap
        if best is not None and best_gap < tolerance_ms:
            aligned.append(
                AlignedPair(
                    timestamp=event.timestamp,
                    value_a=numeric_value(event),
                    value_b=numeric_value(best),
                )
            )

    return aligned


def pearson(values_a: Sequence[float], values_b: Sequence[float]) -> float:
    """Pearson correlation coefficient; 0.0 when either series is flat."""
    a = np.asarray(values_a, dtype=float)
    b = np.asarray(values_b, dtype=float)
    if a.size == 0 or a.size != b.size:
        return 0.0
    diff_a = a - a.mean()
    diff_b = b - b.mean()
    denominator = float(np.sqrt((diff_a * diff_a).sum() * (diff_b * diff_b).sum()))
    if denominator == 0.0:
        return 0.0
    return clamp(float((diff_a * diff_b).sum()) / denominator, -1.0, 1.0)


def describe_correlation(
    category_a: DataCategory, category_b: DataCategory, coefficient: float
) -> str:
    strength = "strongly" if abs(coefficient) > 0.7 else "moderately"
    if coefficient > 0:
        relation = "when one increases, the other tends to increase as well"
    else:
        relation = "when one increases, the other tends to decrease"
    return (
        f"Your {category_a.value} and {category_b.value} data {strength} correlate - "
        f"{relation}"
    )


class CorrelationDetector:
    """Detects correlations between every pair of categories in a batch."""

    def __init__(
        self,
        tolerance_ms: int = 3_600_000,
        min_pairs: int = 3,
        min_coefficient: float = 0.5,
        confidence_saturation: int = 10,
    ):
        """Initialize correlation detector.

        Args:
            tolerance_ms: Maximum timestamp distance for two readings to pair
            min_pairs: Minimum aligned pairs before computing a coefficient
            min_coefficient: Absolute coefficient a pair must exceed
            confidence_saturation: Aligned pairs at which confidence reaches 1
        """
        self.tolerance_ms = tolerance_ms
        self.min_pairs = min_pairs
        self.min_coefficient = min_coefficient
        self.confidence_saturation = confidence_saturation

    def correlate(
        self, events_a: Sequence[Event], events_b: Sequence[Event]
    ) -> Tuple[float, float, int]:
        """Return ``(coefficient, confidence, aligned_pairs)`` for two categories."""
        aligned = align_by_timestamp(events_a, events_b, self.tolerance_ms)
        if len(aligned) < self.min_pairs:
            return 0.0, 0.0, len(aligned)

        coefficient = pearson([p.value_a for p in aligned], [p.value_b for p in aligned])
        confidence = clamp(len(aligned) / self.confidence_saturation)
        return coefficient, confidence, len(aligned)

    def detect(
        self, events_by_category: Mapping[DataCategory, Sequence[Event]]
    ) -> List[Correlation]:
        """Correlations for every unordered category pair, in batch order."""
        correlations: List[Correlation] = []

        for category_a, category_b in combinations(list(events_by_category), 2):
            coefficient, confidence, pairs = self.correlate(
                events_by_category[category_a], events_by_category[category_b]
            )
            if abs(coefficient) <= self.min_coefficient:
                continue

            correlations.append(
                Correlation(
                    category_a=category_a,
                    category_b=category_b,
                    coefficient=coefficient,
                    confidence=confidence,
                    direction=(
                        CorrelationDirection.POSITIVE
                        if coefficient > 0
                        else CorrelationDirection.NEGATIVE
                    ),
                    sample_size=pairs,
                    description=describe_correlation(category_a, category_b, coefficient),
                )
            )

        logger.debug(f"Correlation scan found {len(correlations)} correlation(s)")
        return correlations
