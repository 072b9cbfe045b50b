"""Tests for the analysis orchestrator."""

import json
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from lifeos.analysis.orchestrator import (
    AnalysisOrchestrator,
    analyze_events,
    coerce_events,
    group_by_category,
)
from lifeos.analysis.results import AnomalyKind, Severity, TrendDirection
from lifeos.configuration.settings import AnalysisSettings
from lifeos.errors import (
    FeatureExtractionError,
    InvalidBatchError,
    InvalidFeedbackError,
    MissingSeedError,
    UnknownCategoryError,
)
from lifeos.learning.profile import LearningProfile
from lifeos.models.events import DataCategory, Event
from lifeos.models.insights import InsightType


@pytest.fixture
def orchestrator(settings):
    return AnalysisOrchestrator(settings)


@pytest.fixture
def mixed_batch(series_factory, as_of):
    start = as_of - 20 * 24 * 60 * 60 * 1000
    values = list(range(1, 21))
    health = series_factory(values, DataCategory.HEALTH, start=start)
    finance = series_factory([100 - v for v in values], DataCategory.FINANCE, start=start)
    return health + finance


class TestBatchValidation:
    """Test input coercion."""

    def test_mappings_become_events(self):
        batch = coerce_events([{"id": "a", "dataType": "health", "value": 1, "timestamp": 0}])
        assert isinstance(batch[0], Event)

    @pytest.mark.parametrize("events", [None, "events", {"id": "a"}, 42])
    def test_non_sequence_batch(self, orchestrator, events):
        with pytest.raises(InvalidBatchError):
            orchestrator.analyze(events)

    def test_item_of_wrong_type(self, orchestrator):
        with pytest.raises(InvalidBatchError) as excinfo:
            orchestrator.analyze([Event(event_id="a", category="health"), 7])
        assert excinfo.value.details["position"] == 1

    def test_unknown_category_fails_the_call(self, orchestrator):
        with pytest.raises(UnknownCategoryError):
            orchestrator.analyze([{"id": "a", "dataType": "hobbies", "value": 1, "timestamp": 0}])

    def test_malformed_timestamp_aborts(self, orchestrator, series_factory):
        events = series_factory([1, 2, 3]) + [
            Event(event_id="bad", category=DataCategory.HEALTH, value=1, timestamp=-5)
        ]
        with pytest.raises(FeatureExtractionError):
            orchestrator.analyze(events)

    def test_group_by_category_keeps_first_appearance(self, event_factory):
        events = [
            event_factory("1", 1, category=DataCategory.CAREER),
            event_factory("2", 1, category=DataCategory.HEALTH),
            event_factory("3", 1, category=DataCategory.CAREER),
        ]
        groups = group_by_category(events)
        assert list(groups) == [DataCategory.CAREER, DataCategory.HEALTH]
        assert [e.event_id for e in groups[DataCategory.CAREER]] == ["1", "3"]


class TestAnalyze:
    """Test the full pipeline."""

    def test_empty_batch(self, orchestrator, as_of):
        result, profile = orchestrator.analyze([], as_of=as_of)

        assert result.trends == []
        assert result.cycles == []
        assert result.correlations == []
        assert result.anomalies == []
        assert result.clusters == []
        assert result.predictions == {}
        assert result.is_empty
        assert result.event_count == 0
        assert result.data_quality.score == 0.0
        assert 0.0 <= result.confidence <= 1.0
        assert isinstance(profile, LearningProfile)

    def test_mixed_batch(self, orchestrator, mixed_batch, as_of):
        result, _ = orchestrator.analyze(mixed_batch, as_of=as_of)

        trends = {t.category: t for t in result.trends}
        assert trends[DataCategory.HEALTH].direction is TrendDirection.INCREASING
        assert trends[DataCategory.FINANCE].direction is TrendDirection.DECREASING

        assert len(result.correlations) == 1
        assert result.correlations[0].coefficient == pytest.approx(-1.0)

        assert set(result.predictions) == {DataCategory.HEALTH, DataCategory.FINANCE}
        assert [c.category for c in result.clusters] == [DataCategory.HEALTH, DataCategory.FINANCE]
        assert result.event_count == 40
        assert result.generated_at == as_of
        assert 0.0 <= result.confidence <= 1.0

    def test_outlier_surfaces_as_high_anomaly(self, orchestrator, series_factory, as_of):
        values = [10.0 + (0.1 if i % 2 else -0.1) for i in range(19)] + [11.0]
        result, _ = orchestrator.analyze(series_factory(values), as_of=as_of)

        statistical = [a for a in result.anomalies if a.kind is AnomalyKind.STATISTICAL]
        assert len(statistical) == 1
        assert statistical[0].severity is Severity.HIGH

    def test_seeded_runs_are_identical(self, settings, mixed_batch, as_of):
        first, _ = AnalysisOrchestrator(settings).analyze(mixed_batch, as_of=as_of)
        second, _ = AnalysisOrchestrator(settings).analyze(mixed_batch, as_of=as_of)
        assert first.to_dict() == second.to_dict()

    def test_executor_matches_sequential(self, orchestrator, mixed_batch, as_of):
        sequential, _ = orchestrator.analyze(mixed_batch, as_of=as_of)
        with ThreadPoolExecutor(max_workers=2) as executor:
            parallel, _ = orchestrator.analyze(mixed_batch, as_of=as_of, executor=executor)
        assert parallel.to_dict() == sequential.to_dict()

    def test_raw_records_match_events(self, orchestrator, mixed_batch, as_of):
        from_events, _ = orchestrator.analyze(mixed_batch, as_of=as_of)
        from_records, _ = orchestrator.analyze([e.to_dict() for e in mixed_batch], as_of=as_of)
        assert from_records.to_dict() == from_events.to_dict()

    def test_result_is_json_serializable(self, orchestrator, mixed_batch, as_of):
        result, _ = orchestrator.analyze(mixed_batch, as_of=as_of)
        payload = json.loads(json.dumps(result.to_dict()))
        assert payload["eventCount"] == 40
        assert set(payload["patterns"]) == {
            "trends",
            "cycles",
            "correlations",
            "anomalies",
            "clusters",
        }

    def test_all_scores_bounded(self, orchestrator, mixed_batch, as_of):
        result, _ = orchestrator.analyze(mixed_batch, as_of=as_of)
        for trend in result.trends:
            assert 0.0 <= trend.confidence <= 1.0
        for cycle in result.cycles:
            assert 0.0 <= cycle.strength <= 1.0
        for correlation in result.correlations:
            assert -1.0 <= correlation.coefficient <= 1.0
            assert 0.0 <= correlation.confidence <= 1.0
        for analysis in result.clusters:
            assert -1.0 <= analysis.silhouette <= 1.0
        for prediction in result.predictions.values():
            assert all(0.0 <= p.confidence <= 1.0 for p in prediction.points)

    def test_non_finite_reading_does_not_leak(self, orchestrator, series_factory, as_of):
        start = as_of - 10 * 24 * 60 * 60 * 1000
        steps = [6000, 6000, math.nan, 6000, 6000, 6000]
        health = series_factory([{"steps": s} for s in steps], DataCategory.HEALTH, start=start)
        finance = series_factory([{"amount": 100}] * 6, DataCategory.FINANCE, start=start)

        result, _ = orchestrator.analyze(health + finance, as_of=as_of)

        assert not result.correlations
        assert not result.anomalies
        json.dumps(result.to_dict(), allow_nan=False)

    def test_each_category_is_fitted_once(self, orchestrator, mixed_batch, as_of, monkeypatch):
        calls = []
        original_fit = orchestrator.trend_detector.fit

        def counting_fit(events):
            calls.append(events[0].category)
            return original_fit(events)

        monkeypatch.setattr(orchestrator.trend_detector, "fit", counting_fit)
        result, _ = orchestrator.analyze(mixed_batch, as_of=as_of)

        assert calls == [DataCategory.HEALTH, DataCategory.FINANCE]
        assert {t.category for t in result.trends} == {DataCategory.HEALTH, DataCategory.FINANCE}
        assert set(result.predictions) == {DataCategory.HEALTH, DataCategory.FINANCE}

    def test_missing_seed_is_rejected(self):
        settings = AnalysisSettings.model_validate({"clustering": {"require_seed": True}})
        with pytest.raises(MissingSeedError):
            AnalysisOrchestrator(settings)

    def test_analyze_events_helper(self, settings, mixed_batch, as_of):
        result, _ = analyze_events(mixed_batch, settings=settings, as_of=as_of)
        assert result.event_count == 40


class TestProfileThreading:
    """Test how the learning profile flows through an analysis."""

    def test_prior_profile_is_returned_unchanged(self, orchestrator, mixed_batch, as_of):
        prior = LearningProfile(profile_id="user-1").with_feedback(
            [("trend:health", 0.9, "accepted")], timestamp=1
        )
        _, profile = orchestrator.analyze(mixed_batch, prior, as_of=as_of)
        assert profile is prior

    def test_weights_come_from_prior_profile(self, orchestrator, mixed_batch, as_of):
        prior = LearningProfile().with_feedback(
            [("trend:health", 0.9, "accepted")] * 3 + [("anomaly:x", 0.1, "dismissed")] * 3
        )
        result, _ = orchestrator.analyze(mixed_batch, prior, as_of=as_of)

        assert result.insight_weights[InsightType.TREND] == pytest.approx(1.3)
        assert result.insight_weights[InsightType.ANOMALY] == pytest.approx(0.7)
        assert result.should_surface(InsightType.TREND, 0.45)
        assert not result.should_surface(InsightType.ANOMALY, 0.6)
        assert result.should_surface(InsightType.CYCLE, 0.5)

    def test_feedback_does_not_change_returned_result(self, orchestrator, mixed_batch, as_of):
        result, profile = orchestrator.analyze(mixed_batch, as_of=as_of)
        before = result.to_dict()
        orchestrator.submit_feedback(profile, [("trend:health", 0.1, "dismissed")])
        assert result.to_dict() == before

    def test_submit_feedback_running_mean(self, orchestrator):
        profile = LearningProfile(profile_id="user-1")
        profile, summary = orchestrator.submit_feedback(profile, [("trend:health", 0.9, "accepted")])
        profile, summary = orchestrator.submit_feedback(profile, [("cycle:health:daily", 0.3, "viewed")])
        assert summary.total_feedback == 2
        assert summary.average_rating == pytest.approx(0.6)
        assert summary.learning_progress == pytest.approx(0.02)

    def test_invalid_feedback_leaves_profile_untouched(self, orchestrator):
        profile = LearningProfile(profile_id="user-1")
        with pytest.raises(InvalidFeedbackError):
            orchestrator.submit_feedback(
                profile, [("trend:health", 0.9, "ok"), ("trend:health", 1.5, "ok")]
            )
        assert profile.summary.total_feedback == 0
