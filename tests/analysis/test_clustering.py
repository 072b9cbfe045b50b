"""Tests for seeded K-means clustering."""

import numpy as np
import pytest

from lifeos.analysis.clustering import (
    ClusterDetector,
    kmeans,
    most_frequent,
    silhouette_score,
)
from lifeos.errors import MissingSeedError
from lifeos.models.events import DataCategory

HOUR_MS = 60 * 60 * 1000


class FixedChoice:
    """Stand-in generator that always seeds K-means from the given rows."""

    def __init__(self, rows):
        self.rows = rows

    def choice(self, n, size, replace):
        return np.asarray(self.rows[:size])


@pytest.fixture
def grouped_data():
    return np.asarray([[0.0]] * 5 + [[5.0]] * 5 + [[10.0]] * 5)


class TestKMeans:
    """Test the Lloyd iterations."""

    def test_separates_distinct_groups(self, grouped_data):
        result = kmeans(grouped_data, 3, FixedChoice([0, 5, 10]))
        assert list(result.assignments) == [0] * 5 + [1] * 5 + [2] * 5
        assert result.centroids[:, 0].tolist() == [0.0, 5.0, 10.0]
        assert result.iterations == 0

    def test_empty_cluster_keeps_centroid(self, grouped_data):
        # Two identical seeds: the second never wins a tie and stays put
        result = kmeans(grouped_data, 3, FixedChoice([0, 1, 5]))
        assert 1 not in set(result.assignments.tolist())
        assert result.centroids[1, 0] == 0.0

    def test_iteration_cap(self):
        data = np.asarray([[0.0], [1.0], [2.0], [9.0], [10.0]])
        result = kmeans(data, 2, FixedChoice([0, 1]), max_iterations=1)
        assert result.iterations == 1

    def test_same_seed_same_result(self, grouped_data):
        first = kmeans(grouped_data, 3, np.random.default_rng(7))
        second = kmeans(grouped_data, 3, np.random.default_rng(7))
        assert first.assignments.tolist() == second.assignments.tolist()


class TestSilhouette:
    def test_perfect_separation(self, grouped_data):
        labels = np.asarray([0] * 5 + [1] * 5 + [2] * 5)
        assert silhouette_score(grouped_data, labels) == pytest.approx(1.0)

    def test_single_cluster_scores_zero(self, grouped_data):
        assert silhouette_score(grouped_data, np.zeros(15, dtype=int)) == 0.0

    def test_singleton_cluster(self):
        data = np.asarray([[0.0], [1.0], [10.0]])
        labels = np.asarray([0, 0, 1])
        score = silhouette_score(data, labels)
        assert -1.0 <= score <= 1.0

    def test_too_few_points(self):
        assert silhouette_score(np.asarray([[1.0]]), np.asarray([0])) == 0.0


class TestMostFrequent:
    def test_first_seen_wins_ties(self):
        assert most_frequent(["b", "a", "a", "b"]) == "b"

    def test_empty(self):
        assert most_frequent([]) is None


class TestClusterDetector:
    """Test clustering of a category's events."""

    def _events(self, event_factory, values, category=DataCategory.FINANCE):
        return [
            event_factory(f"e{i}", {"amount": v}, timestamp=i * HOUR_MS, category=category)
            for i, v in enumerate(values)
        ]

    def test_require_seed(self, extractor):
        with pytest.raises(MissingSeedError):
            ClusterDetector(extractor, require_seed=True)

    def test_too_few_events(self, extractor, event_factory):
        detector = ClusterDetector(extractor, seed=1)
        assert detector.detect(self._events(event_factory, [1, 2, 3, 4])) is None

    def test_partition_covers_every_event(self, extractor, event_factory):
        events = self._events(event_factory, [10, 12, 11, 500, 510, 505, 990, 1000, 995])
        analysis = ClusterDetector(extractor, seed=3).detect(events)

        assert analysis is not None
        assert len(analysis.clusters) == 3
        assert sum(c.size for c in analysis.clusters) == len(events)
        member_ids = sorted(e.event_id for c in analysis.clusters for e in c.members)
        assert member_ids == sorted(e.event_id for e in events)
        assert -1.0 <= analysis.silhouette <= 1.0
        assert analysis.insight_id == "cluster:finance"
        assert len(analysis.assignments) == len(events)

    def test_seeded_runs_are_identical(self, extractor, event_factory):
        events = self._events(event_factory, [3, 80, 45, 12, 99, 60, 7, 33, 71, 20])
        first = ClusterDetector(extractor, seed=42).detect(events)
        second = ClusterDetector(extractor, seed=42).detect(events)
        assert first.to_dict() == second.to_dict()

    def test_rng_depends_on_category_not_order(self, extractor):
        detector = ClusterDetector(extractor, seed=5)
        health = detector.rng_for(DataCategory.HEALTH).integers(0, 1_000_000, size=4)
        detector.rng_for(DataCategory.FINANCE).integers(0, 1_000_000, size=4)
        again = detector.rng_for(DataCategory.HEALTH).integers(0, 1_000_000, size=4)
        assert health.tolist() == again.tolist()

    def test_feature_matrix_uses_union_of_fields(self, extractor, event_factory):
        events = [
            event_factory("a", {"steps": 10000}, timestamp=0),
            event_factory("b", {"sleep": 6}, timestamp=0),
        ]
        matrix = ClusterDetector(extractor, seed=1).feature_matrix(events)
        # Columns: sleep, steps, hour/24, weekday/7
        assert matrix.shape == (2, 4)
        assert matrix[0, :2].tolist() == [0.0, 0.5]
        assert matrix[1, :2].tolist() == [0.5, 0.0]

    def test_cluster_center_and_characteristics(self, extractor, event_factory):
        events = [
            event_factory(f"e{i}", {"amount": 100}, timestamp=9 * HOUR_MS, source="bank")
            for i in range(6)
        ]
        analysis = ClusterDetector(extractor, k=2, seed=9).detect(events)
        populated = [c for c in analysis.clusters if c.size]

        assert len(populated) == 1
        center = populated[0].center
        assert (center.mean, center.min, center.max, center.std_dev) == (100.0, 100.0, 100.0, 0.0)
        chars = populated[0].characteristics
        assert chars.dominant_hour_of_day == 9
        assert chars.dominant_time_of_day == "morning"
        assert chars.dominant_source == "bank"
        empty = [c for c in analysis.clusters if not c.size]
        assert empty[0].center is None
