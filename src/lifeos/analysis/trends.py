"""Trend detection via ordinary least squares.

Values are regressed against their position in the time-ordered series rather
than wall-clock time, so irregular sampling and timestamp scale do not change
the slope. R² of the fit doubles as the trend confidence.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from lifeos.analysis.features import numeric_value
from lifeos.analysis.results import LinearFit, Trend, TrendDirection, clamp
from lifeos.models.events import DataCategory, Event

logger = logging.getLogger(__name__)


_TREND_TEMPLATES = {
    DataCategory.HEALTH: "Your health metrics are {strength} {direction}",
    DataCategory.FINANCE: "Your financial patterns show a {strength} {direction} trend",
    DataCategory.PRODUCTIVITY: "Your productivity is {strength} {direction}",
    DataCategory.RELATIONSHIPS: "Your relationship activities are {strength} {direction}",
    DataCategory.CAREER: "Your career development is {strength} {direction}",
}


def sort_by_time(events: Sequence[Event]) -> List[Event]:
    """Stable time ordering; the input sequence is left untouched."""
    return sorted(events, key=lambda event: event.timestamp)


def fit_linear_trend(values: Sequence[float], min_points: int = 3) -> LinearFit:
    """Least-squares fit of ``values`` against their index.

    Fewer than ``min_points`` values yield a zero fit. A constant series has
    no explained variance and reports confidence 0.
    """
    n = len(values)
    if n < min_points or n < 2:
        return LinearFit(last_value=float(values[-1]) if n else 0.0, sample_size=n)

    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)

    sum_x = x.sum()
    sum_y = y.sum()
    denominator = n * (x * x).sum() - sum_x * sum_x
    slope = float((n * (x * y).sum() - sum_x * sum_y) / denominator)
    intercept = float((sum_y - slope * sum_x) / n)

    total_ss = float(((y - y.mean()) ** 2).sum())
    if total_ss == 0.0:
        # Flat series: report no slope at all
        return LinearFit(intercept=float(y[0]), last_value=float(y[-1]), sample_size=n)

    residual_ss = float(((y - (slope * x + intercept)) ** 2).sum())
    r_squared = 1.0 - residual_ss / total_ss

    return LinearFit(
        slope=slope,
        intercept=intercept,
        confidence=clamp(r_squared),
        last_value=float(y[-1]),
        sample_size=n,
    )


def describe_trend(category: DataCategory, slope: float) -> str:
    direction = "improving" if slope > 0 else "declining"
    strength = "strongly" if abs(slope) > 0.5 else "moderately"
    template = _TREND_TEMPLATES.get(
        category, "Your {category} data shows a {strength} {direction} pattern"
    )
    return template.format(category=category.value, strength=strength, direction=direction)


class TrendDetector:
    """Detects sustained linear trends within one data category."""

    def __init__(self, min_points: int = 3, min_confidence: float = 0.7):
        """Initialize trend detector.

        Args:
            min_points: Minimum events required before fitting
            min_confidence: R² a fit must exceed to be reported
        """
        self.min_points = min_points
        self.min_confidence = min_confidence

    def fit(self, events: Sequence[Event]) -> LinearFit:
        """Fit a line through the time-ordered numeric values of ``events``."""
        ordered = sort_by_time(events)
        return fit_linear_trend([numeric_value(e) for e in ordered], self.min_points)

    def detect(self, events: Sequence[Event]) -> Optional[Trend]:
        """Return the category's trend, or None when there is none to report."""
        if not events:
            return None
        return self.detect_from_fit(events, self.fit(events))

    def detect_from_fit(self, events: Sequence[Event], fit: LinearFit) -> Optional[Trend]:
        """Build the trend of ``events`` from a fit already computed for them."""
        if not events:
            return None

        category = events[0].category
        if fit.slope == 0 or fit.confidence <= self.min_confidence:
            logger.debug(
                f"No trend for {category.value}: "
                f"slope={fit.slope:.4f} confidence={fit.confidence:.3f} n={fit.sample_size}"
            )
            return None

        timestamps = [e.timestamp for e in events]
        return Trend(
            category=category,
            direction=TrendDirection.INCREASING if fit.slope > 0 else TrendDirection.DECREASING,
            strength=abs(fit.slope),
            confidence=fit.confidence,
            duration_ms=int(max(timestamps) - min(timestamps)),
            slope=fit.slope,
            intercept=fit.intercept,
            description=describe_trend(category, fit.slope),
        )
