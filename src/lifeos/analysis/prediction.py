"""Short-horizon forecasting by extrapolating the fitted trend line."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from lifeos.analysis.results import LinearFit, Prediction, PredictionPoint, TrendDirection, clamp
from lifeos.analysis.trends import TrendDetector
from lifeos.models.events import DataCategory, Event

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


class PredictionEngine:
    """Extends a category's linear fit ``horizon`` steps into the future.

    Each step's confidence decays linearly to ``1 - confidence_decay`` of the
    fit confidence at the horizon; predicted values are floored at zero.
    """

    def __init__(
        self,
        trend_detector: TrendDetector,
        horizon: int = 7,
        min_confidence: float = 0.5,
        step_ms: int = DAY_MS,
        confidence_decay: float = 0.3,
    ):
        self.trend_detector = trend_detector
        self.horizon = horizon
        self.min_confidence = min_confidence
        self.step_ms = step_ms
        self.confidence_decay = confidence_decay

    def predict(self, events: Sequence[Event], as_of: int) -> Optional[Prediction]:
        """Forecast for the category of ``events`` starting after ``as_of``."""
        if not events:
            return None
        fit = self.trend_detector.fit(events)
        return self.extrapolate(events[0].category, fit, as_of)

    def extrapolate(
        self, category: DataCategory, fit: LinearFit, as_of: int
    ) -> Optional[Prediction]:
        if fit.confidence <= self.min_confidence:
            return None

        points = []
        for step in range(1, self.horizon + 1):
            decay = 1 - (step / self.horizon) * self.confidence_decay
            points.append(
                PredictionPoint(
                    timestamp=int(as_of + step * self.step_ms),
                    value=max(0.0, fit.last_value + fit.slope * step),
                    confidence=clamp(fit.confidence * decay),
                )
            )

        direction = TrendDirection.INCREASING if fit.slope > 0 else TrendDirection.DECREASING
        return Prediction(
            category=category,
            direction=direction,
            confidence=fit.confidence,
            points=points,
            description=describe_prediction(category, fit.slope, self.horizon),
        )


def describe_prediction(category: DataCategory, slope: float, horizon: int) -> str:
    direction = "improve" if slope > 0 else "decline"
    strength = "significantly" if abs(slope) > 0.5 else "moderately"
    return (
        f"Based on current patterns, your {category.value} is expected to "
        f"{strength} {direction} over the next {horizon} days"
    )
