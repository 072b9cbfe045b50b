"""Result types produced by the pattern detectors.

Each finding carries a stable ``insight_id`` so user feedback can reference it
on a later invocation, and an ``insight_type`` used by the learning profile to
weight what the caller surfaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from lifeos.models.events import DataCategory, Event
from lifeos.models.insights import InsightType


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"


class CyclePeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class CorrelationDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class AnomalyKind(str, Enum):
    STATISTICAL = "statistical"
    CONTEXTUAL = "contextual"


class Severity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp to ``[lower, upper]``; NaN is treated as 0 before clamping."""
    if value != value:
        value = 0.0
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least squares fit of value against index.

    Attributes:
        slope: Change in value per index step
        intercept: Fitted value at index 0
        confidence: R² of the fit, clamped to [0, 1]
        last_value: Numeric value of the most recent point
        sample_size: Number of points fitted
    """

    slope: float = 0.0
    intercept: float = 0.0
    confidence: float = 0.0
    last_value: float = 0.0
    sample_size: int = 0


@dataclass
class Trend:
    """A sustained increase or decrease within one category."""

    category: DataCategory
    direction: TrendDirection
    strength: float
    confidence: float
    duration_ms: int
    slope: float
    intercept: float
    description: str = ""

    @property
    def insight_id(self) -> str:
        return f"trend:{self.category.value}"

    insight_type = InsightType.TREND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "dataType": self.category.value,
            "direction": self.direction.value,
            "strength": self.strength,
            "confidence": self.confidence,
            "durationMs": self.duration_ms,
            "slope": self.slope,
            "intercept": self.intercept,
            "description": self.description,
        }


@dataclass
class Cycle:
    """A recurring daily, weekly or monthly profile within one category."""

    category: DataCategory
    period: CyclePeriod
    strength: float
    profile: List[float]
    peak_bucket: int
    trough_bucket: int
    description: str = ""

    @property
    def insight_id(self) -> str:
        return f"cycle:{self.category.value}:{self.period.value}"

    insight_type = InsightType.CYCLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "dataType": self.category.value,
            "periodType": self.period.value,
            "strength": self.strength,
            "profile": list(self.profile),
            "peakBucket": self.peak_bucket,
            "troughBucket": self.trough_bucket,
            "description": self.description,
        }


@dataclass
class Correlation:
    """Linear association between two categories' aligned readings."""

    category_a: DataCategory
    category_b: DataCategory
    coefficient: float
    confidence: float
    direction: CorrelationDirection
    sample_size: int
    description: str = ""

    @property
    def strength(self) -> float:
        return abs(self.coefficient)

    @property
    def insight_id(self) -> str:
        return f"correlation:{self.category_a.value}:{self.category_b.value}"

    insight_type = InsightType.CORRELATION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "dataTypeA": self.category_a.value,
            "dataTypeB": self.category_b.value,
            "coefficient": self.coefficient,
            "strength": self.strength,
            "confidence": self.confidence,
            "direction": self.direction.value,
            "sampleSize": self.sample_size,
            "description": self.description,
        }


@dataclass
class Anomaly:
    """An event that stands out statistically or for its time slot."""

    event: Event
    kind: AnomalyKind
    severity: Severity
    z_score: Optional[float] = None
    description: str = ""

    @property
    def category(self) -> DataCategory:
        return self.event.category

    @property
    def insight_id(self) -> str:
        return f"anomaly:{self.kind.value}:{self.event.event_id}"

    insight_type = InsightType.ANOMALY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "eventId": self.event.event_id,
            "dataType": self.category.value,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "zScore": self.z_score,
            "description": self.description,
        }


@dataclass(frozen=True)
class ClusterCenter:
    """Summary statistics of the numeric values in a cluster."""

    mean: float
    min: float
    max: float
    std_dev: float


@dataclass(frozen=True)
class ClusterCharacteristics:
    """Most frequent temporal and source attributes of a cluster."""

    dominant_hour_of_day: Optional[int] = None
    dominant_day_of_week: Optional[int] = None
    dominant_time_of_day: Optional[str] = None
    dominant_source: Optional[str] = None


@dataclass
class Cluster:
    """One K-means group of events."""

    cluster_id: int
    members: List[Event]
    center: Optional[ClusterCenter]
    characteristics: ClusterCharacteristics

    @property
    def size(self) -> int:
        return len(self.members)

    def to_dict(self) -> Dict[str, Any]:
        center = None
        if self.center is not None:
            center = {
                "mean": self.center.mean,
                "min": self.center.min,
                "max": self.center.max,
                "stdDev": self.center.std_dev,
            }
        chars = self.characteristics
        return {
            "id": self.cluster_id,
            "size": self.size,
            "memberIds": [event.event_id for event in self.members],
            "center": center,
            "characteristics": {
                "dominantHourOfDay": chars.dominant_hour_of_day,
                "dominantDayOfWeek": chars.dominant_day_of_week,
                "dominantTimeOfDay": chars.dominant_time_of_day,
                "dominantSource": chars.dominant_source,
            },
        }


@dataclass
class ClusterAnalysis:
    """All clusters of one category plus the run's silhouette score."""

    category: DataCategory
    clusters: List[Cluster]
    silhouette: float
    iterations: int
    assignments: List[int] = field(default_factory=list)
    description: str = ""

    @property
    def insight_id(self) -> str:
        return f"cluster:{self.category.value}"

    insight_type = InsightType.CLUSTER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "dataType": self.category.value,
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "silhouette": self.silhouette,
            "iterations": self.iterations,
            "description": self.description,
        }


@dataclass(frozen=True)
class PredictionPoint:
    timestamp: int
    value: float
    confidence: float


@dataclass
class Prediction:
    """Short-horizon linear forecast for one category."""

    category: DataCategory
    direction: TrendDirection
    confidence: float
    points: List[PredictionPoint]
    description: str = ""

    @property
    def insight_id(self) -> str:
        return f"prediction:{self.category.value}"

    insight_type = InsightType.PREDICTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "dataType": self.category.value,
            "trend": self.direction.value,
            "confidence": self.confidence,
            "predictions": [
                {"timestamp": p.timestamp, "value": p.value, "confidence": p.confidence}
                for p in self.points
            ],
            "description": self.description,
        }


@dataclass
class DataQuality:
    """Components of the data-quality score."""

    recency: float = 0.0
    variety: float = 0.0
    consistency: float = 0.0

    @property
    def score(self) -> float:
        return (self.recency + self.variety + self.consistency) / 3


@dataclass
class AnalysisResult:
    """Aggregate output of one analysis invocation.

    Attributes:
        trends: Trends with confidence above the emission threshold
        cycles: Cycles with strength above the emission threshold
        correlations: Cross-category correlations
        anomalies: Statistical anomalies followed by contextual anomalies
        clusters: One clustering run per sufficiently large category
        predictions: Forecasts keyed by category
        confidence: Overall confidence in [0, 1]
        data_quality: Breakdown of the data-quality component
        insight_weights: Per insight type weights from the prior profile
        event_count: Number of events analyzed
        generated_at: Reference time (epoch millis) of the analysis
    """

    trends: List[Trend] = field(default_factory=list)
    cycles: List[Cycle] = field(default_factory=list)
    correlations: List[Correlation] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    clusters: List[ClusterAnalysis] = field(default_factory=list)
    predictions: Dict[DataCategory, Prediction] = field(default_factory=dict)
    confidence: float = 0.0
    data_quality: DataQuality = field(default_factory=DataQuality)
    insight_weights: Dict[InsightType, float] = field(default_factory=dict)
    event_count: int = 0
    generated_at: int = field(
        default_factory=lambda: int(datetime.now(timezone.utc).timestamp() * 1000)
    )

    @property
    def is_empty(self) -> bool:
        return not (
            self.trends
            or self.cycles
            or self.correlations
            or self.anomalies
            or self.clusters
            or self.predictions
        )

    def should_surface(self, insight_type: InsightType, confidence: float) -> bool:
        """Decide whether a finding is worth showing given learned weights.

        Insight types the user rated poorly need more confidence to surface,
        liked types need less.
        """
        weight = self.insight_weights.get(InsightType(insight_type), 1.0)
        if weight < 0.8:
            return confidence >= 0.8
        if weight > 1.2:
            return confidence >= 0.4
        return confidence >= 0.5

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary for the API layer."""
        return {
            "patterns": {
                "trends": [t.to_dict() for t in self.trends],
                "cycles": [c.to_dict() for c in self.cycles],
                "correlations": [c.to_dict() for c in self.correlations],
                "anomalies": [a.to_dict() for a in self.anomalies],
                "clusters": [c.to_dict() for c in self.clusters],
            },
            "predictions": {
                category.value: prediction.to_dict()
                for category, prediction in self.predictions.items()
            },
            "confidence": self.confidence,
            "dataQuality": {
                "score": self.data_quality.score,
                "recency": self.data_quality.recency,
                "variety": self.data_quality.variety,
                "consistency": self.data_quality.consistency,
            },
            "insightWeights": {
                insight_type.value: weight
                for insight_type, weight in self.insight_weights.items()
            },
            "eventCount": self.event_count,
            "generatedAt": self.generated_at,
        }
