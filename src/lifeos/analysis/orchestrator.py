"""Analysis orchestrator.

Runs every detector over a batch of events and folds the findings into one
``AnalysisResult``. The orchestrator holds configuration only; the learning
profile is threaded through explicitly so concurrent invocations for
different users never share state.

Pipeline:
    1. Validate the batch and coerce raw records into ``Event`` objects
    2. Extract features for every event (a malformed timestamp aborts here)
    3. Group events per category, in order of first appearance
    4. Per category: trend, cycles, anomalies, clusters, prediction
    5. Across categories: correlations
    6. Data quality and overall confidence

Example:
    >>> orchestrator = AnalysisOrchestrator()
    >>> result, profile = orchestrator.analyze(events)
    >>> for trend in result.trends:
    ...     print(trend.description)
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import repeat
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from lifeos.analysis.anomalies import AnomalyDetector
from lifeos.analysis.clustering import ClusterDetector
from lifeos.analysis.correlation_detector import CorrelationDetector
from lifeos.analysis.cycles import CycleDetector
from lifeos.analysis.features import FeatureExtractor
from lifeos.analysis.prediction import PredictionEngine
from lifeos.analysis.quality import assess_data_quality, overall_confidence
from lifeos.analysis.results import (
    AnalysisResult,
    Anomaly,
    ClusterAnalysis,
    Cycle,
    Prediction,
    Trend,
)
from lifeos.analysis.trends import TrendDetector
from lifeos.configuration.settings import AnalysisSettings
from lifeos.errors import InvalidBatchError
from lifeos.learning.profile import FeedbackInput, LearningProfile, ProfileSummary
from lifeos.models.events import DataCategory, Event

logger = logging.getLogger(__name__)


@dataclass
class CategoryFindings:
    """Findings of the per-category detectors for one category."""

    category: DataCategory
    trend: Optional[Trend] = None
    cycles: List[Cycle] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    clusters: Optional[ClusterAnalysis] = None
    prediction: Optional[Prediction] = None


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def coerce_events(events: Any) -> List[Event]:
    """Validate a batch and convert raw records into ``Event`` objects.

    Raises:
        InvalidBatchError: The batch is not a sequence of events or records
        UnknownCategoryError: A record names a category outside the closed set
    """
    if events is None or isinstance(events, (str, bytes, Mapping)):
        raise InvalidBatchError(
            f"Expected a sequence of events, got {type(events).__name__}"
        )
    try:
        items = list(events)
    except TypeError:
        raise InvalidBatchError(
            f"Expected a sequence of events, got {type(events).__name__}"
        ) from None

    batch: List[Event] = []
    for position, item in enumerate(items):
        if isinstance(item, Event):
            batch.append(item)
        elif isinstance(item, Mapping):
            batch.append(Event.from_dict(item))
        else:
            raise InvalidBatchError(
                f"Batch item {position} is a {type(item).__name__}, not an event",
                details={"position": position},
            )
    return batch


def group_by_category(events: Iterable[Event]) -> Dict[DataCategory, List[Event]]:
    """Events per category, categories in order of first appearance."""
    groups: Dict[DataCategory, List[Event]] = {}
    for event in events:
        groups.setdefault(event.category, []).append(event)
    return groups


class AnalysisOrchestrator:
    """Coordinates feature extraction and every pattern detector."""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        """Initialize orchestrator.

        Args:
            settings: Engine configuration; defaults apply when omitted

        Raises:
            MissingSeedError: Clustering requires a seed and none is configured
        """
        self.settings = settings or AnalysisSettings()
        cfg = self.settings

        self.extractor = FeatureExtractor(
            feature_ranges=cfg.features.feature_ranges,
            timezone=cfg.features.timezone,
            default_range=cfg.features.default_range,
        )
        self.trend_detector = TrendDetector(
            min_points=cfg.trends.min_points,
            min_confidence=cfg.trends.min_confidence,
        )
        self.cycle_detector = CycleDetector(
            self.extractor, min_strength=cfg.cycles.min_strength
        )
        self.correlation_detector = CorrelationDetector(
            tolerance_ms=cfg.correlations.tolerance_ms,
            min_pairs=cfg.correlations.min_pairs,
            min_coefficient=cfg.correlations.min_coefficient,
            confidence_saturation=cfg.correlations.confidence_saturation,
        )
        self.anomaly_detector = AnomalyDetector(
            self.extractor,
            min_points=cfg.anomalies.min_points,
            z_threshold=cfg.anomalies.z_threshold,
            high_z_threshold=cfg.anomalies.high_z_threshold,
            min_peers=cfg.anomalies.min_peers,
            contextual_deviation=cfg.anomalies.contextual_deviation,
        )
        self.cluster_detector = ClusterDetector(
            self.extractor,
            k=cfg.clustering.k,
            min_points=cfg.clustering.min_points,
            max_iterations=cfg.clustering.max_iterations,
            tolerance=cfg.clustering.tolerance,
            seed=cfg.clustering.seed,
            require_seed=cfg.clustering.require_seed,
        )
        self.prediction_engine = PredictionEngine(
            self.trend_detector,
            horizon=cfg.prediction.horizon,
            min_confidence=cfg.prediction.min_confidence,
            step_ms=cfg.prediction.step_ms,
            confidence_decay=cfg.prediction.confidence_decay,
        )

    def analyze(
        self,
        events: Iterable[Any],
        prior_profile: Optional[LearningProfile] = None,
        *,
        as_of: Optional[int] = None,
        executor: Optional[Executor] = None,
    ) -> Tuple[AnalysisResult, LearningProfile]:
        """Analyze a batch of events.

        Args:
            events: ``Event`` objects or raw event records
            prior_profile: Profile whose weights inform what to surface
            as_of: Reference time in epoch millis; defaults to now
            executor: Optional executor the per-category work is fanned out on

        Returns:
            The aggregated result and the (unchanged) learning profile

        Raises:
            InvalidBatchError: The batch or one of its records is malformed
            FeatureExtractionError: An event carries an invalid timestamp
        """
        batch = coerce_events(events)
        for event in batch:
            self.extractor.extract(event)

        reference = _now_ms() if as_of is None else int(as_of)
        profile = prior_profile if prior_profile is not None else LearningProfile()
        groups = group_by_category(batch)

        if executor is None:
            findings = [self._analyze_category(group, reference) for group in groups.values()]
        else:
            findings = list(
                executor.map(self._analyze_category, groups.values(), repeat(reference))
            )

        result = AnalysisResult(
            event_count=len(batch),
            generated_at=reference,
            insight_weights=profile.insight_weights(),
        )
        for item in findings:
            if item.trend is not None:
                result.trends.append(item.trend)
            result.cycles.extend(item.cycles)
            result.anomalies.extend(item.anomalies)
            if item.clusters is not None:
                result.clusters.append(item.clusters)
            if item.prediction is not None:
                result.predictions[item.category] = item.prediction

        result.correlations = self.correlation_detector.detect(groups)

        confidence_cfg = self.settings.confidence
        result.data_quality = assess_data_quality(
            batch,
            groups,
            reference,
            recency_window_days=confidence_cfg.recency_window_days,
        )
        result.confidence = (
            overall_confidence(
                result.data_quality,
                len(batch),
                volume_saturation=confidence_cfg.volume_saturation,
                pattern_strength=confidence_cfg.pattern_strength,
            )
            if batch
            else 0.0
        )

        logger.info(
            f"Analyzed {len(batch)} events across {len(groups)} categories: "
            f"{len(result.trends)} trends, {len(result.cycles)} cycles, "
            f"{len(result.correlations)} correlations, {len(result.anomalies)} anomalies, "
            f"{len(result.predictions)} predictions (confidence={result.confidence:.2f})"
        )
        return result, profile

    def _analyze_category(self, events: List[Event], as_of: int) -> CategoryFindings:
        category = events[0].category
        fit = self.trend_detector.fit(events)
        return CategoryFindings(
            category=category,
            trend=self.trend_detector.detect_from_fit(events, fit),
            cycles=self.cycle_detector.detect(events),
            anomalies=self.anomaly_detector.detect(events),
            clusters=self.cluster_detector.detect(events),
            prediction=self.prediction_engine.extrapolate(category, fit, as_of),
        )

    def submit_feedback(
        self, profile: LearningProfile, items: Iterable[FeedbackInput]
    ) -> Tuple[LearningProfile, ProfileSummary]:
        """Record feedback on surfaced insights.

        Raises:
            InvalidFeedbackError: Any item is malformed; the profile is unchanged
        """
        updated = profile.with_feedback(items)
        summary = updated.summary
        logger.info(
            f"Profile {updated.profile_id}: {summary.total_feedback} feedback entries, "
            f"average rating {summary.average_rating:.2f}"
        )
        return updated, summary


def analyze_events(
    events: Iterable[Any],
    prior_profile: Optional[LearningProfile] = None,
    settings: Optional[AnalysisSettings] = None,
    *,
    as_of: Optional[int] = None,
) -> Tuple[AnalysisResult, LearningProfile]:
    """Analyze ``events`` with a one-off orchestrator."""
    return AnalysisOrchestrator(settings).analyze(events, prior_profile, as_of=as_of)
