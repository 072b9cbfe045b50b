"""Statistical and contextual anomaly detection.

Two independent detectors run over each category:

- **Statistical**: Z-score of every reading against the category mean.
- **Contextual**: a reading compared with the other readings taken in the
  same hour of the same weekday (e.g. "Monday 9am"), so a value that is
  normal overall but unusual for its time slot is still flagged.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

import numpy as np

from lifeos.analysis.features import FeatureExtractor, numeric_value
from lifeos.analysis.results import Anomaly, AnomalyKind, Severity
from lifeos.models.events import Event

logger = logging.getLogger(__name__)


def z_scores(values: Sequence[float]) -> List[float]:
    """Population Z-scores; all zero when the series has no spread."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return []
    std = float(arr.std())
    if std == 0.0:
        return [0.0] * arr.size
    return [float(z) for z in (arr - arr.mean()) / std]


class AnomalyDetector:
    """Flags outlying readings within one data category."""

    def __init__(
        self,
        extractor: FeatureExtractor,
        min_points: int = 5,
        z_threshold: float = 2.5,
        high_z_threshold: float = 3.0,
        min_peers: int = 3,
        contextual_deviation: float = 0.5,
    ):
        """Initialize anomaly detector.

        Args:
            extractor: Source of calendar features for contextual grouping
            min_points: Minimum readings for statistical detection
            z_threshold: |Z| above which a reading is a medium anomaly
            high_z_threshold: |Z| above which a reading is a high anomaly
            min_peers: Minimum same-slot peers for contextual detection
            contextual_deviation: Fraction of the peer mean a reading may deviate
        """
        self.extractor = extractor
        self.min_points = min_points
        self.z_threshold = z_threshold
        self.high_z_threshold = high_z_threshold
        self.min_peers = min_peers
        self.contextual_deviation = contextual_deviation

    def detect(self, events: Sequence[Event]) -> List[Anomaly]:
        """Statistical anomalies followed by contextual anomalies."""
        return self.detect_statistical(events) + self.detect_contextual(events)

    def detect_statistical(self, events: Sequence[Event]) -> List[Anomaly]:
        if len(events) < self.min_points:
            return []

        values = [numeric_value(e) for e in events]
        anomalies = []
        for event, value, z in zip(events, values, z_scores(values)):
            if abs(z) <= self.z_threshold:
                continue
            anomalies.append(
                Anomaly(
                    event=event,
                    kind=AnomalyKind.STATISTICAL,
                    severity=Severity.HIGH if abs(z) > self.high_z_threshold else Severity.MEDIUM,
                    z_score=z,
                    description=(
                        f"Unusual {event.category.value} value of {value:g} detected "
                        f"({abs(z):.1f} standard deviations from normal)"
                    ),
                )
            )
        return anomalies

    def detect_contextual(self, events: Sequence[Event]) -> List[Anomaly]:
        keys: List[Tuple[int, int]] = []
        slots: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        for index, event in enumerate(events):
            temporal = self.extractor.temporal_features(event.timestamp, event.event_id)
            key = (temporal.hour_of_day, temporal.day_of_week)
            keys.append(key)
            slots[key].append(index)

        values = [numeric_value(e) for e in events]
        anomalies = []
        for index, event in enumerate(events):
            peers = [
                values[i]
                for i in slots[keys[index]]
                if events[i].event_id != event.event_id
            ]
            if len(peers) < self.min_peers:
                continue

            peer_mean = sum(peers) / len(peers)
            if abs(values[index] - peer_mean) > abs(peer_mean) * self.contextual_deviation:
                anomalies.append(
                    Anomaly(
                        event=event,
                        kind=AnomalyKind.CONTEXTUAL,
                        severity=Severity.MEDIUM,
                        description=(
                            f"Unusual {event.category.value} pattern for this time of day/week"
                        ),
                    )
                )
        return anomalies
