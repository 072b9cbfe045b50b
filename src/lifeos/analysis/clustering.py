"""Behavioral clustering with K-means.

Groups a category's events by their normalized readings and by when they
happen (hour of day, day of week), then summarises each group: its size, the
spread of its values, and its dominant time slot and source. A silhouette
score rates how well separated the groups are.

Centroid initialisation draws from a ``numpy.random.Generator`` derived from
an explicit seed and the category, so repeated runs on the same input give
identical assignments regardless of the order categories are processed in.

Example:
    >>> detector = ClusterDetector(FeatureExtractor(), seed=7)
    >>> analysis = detector.detect(health_events)
    >>> analysis.silhouette
    0.62
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from lifeos.analysis.features import FeatureExtractor, numeric_value
from lifeos.analysis.results import (
    Cluster,
    ClusterAnalysis,
    ClusterCenter,
    ClusterCharacteristics,
    clamp,
)
from lifeos.errors import MissingSeedError
from lifeos.models.events import DataCategory, Event

logger = logging.getLogger(__name__)


@dataclass
class KMeansResult:
    """Outcome of one K-means run.

    Attributes:
        centroids: Final centroid matrix, shape (k, dimensions)
        assignments: Cluster index per input row
        iterations: Update rounds performed before convergence or the cap
    """

    centroids: np.ndarray
    assignments: np.ndarray
    iterations: int


def pairwise_distances(data: np.ndarray) -> np.ndarray:
    """Euclidean distance matrix of the rows of ``data``."""
    deltas = data[:, None, :] - data[None, :, :]
    return np.sqrt((deltas * deltas).sum(axis=-1))


def nearest_centroid(data: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the closest centroid per row; lowest index wins ties."""
    deltas = data[:, None, :] - centroids[None, :, :]
    return np.argmin((deltas * deltas).sum(axis=-1), axis=1)


def kmeans(
    data: np.ndarray,
    k: int,
    rng: np.random.Generator,
    max_iterations: int = 100,
    tolerance: float = 0.001,
) -> KMeansResult:
    """Lloyd's algorithm seeded with ``k`` distinct sampled rows.

    A cluster that loses all its members keeps its previous centroid. Stops
    when every centroid moves less than ``tolerance`` or after
    ``max_iterations`` rounds.
    """
    n = data.shape[0]
    k = min(k, n)
    initial = rng.choice(n, size=k, replace=False)
    centroids = data[np.sort(initial)].copy()

    iterations = 0
    while iterations < max_iterations:
        assignments = nearest_centroid(data, centroids)

        updated = centroids.copy()
        for cluster in range(k):
            members = data[assignments == cluster]
            if len(members):
                updated[cluster] = members.mean(axis=0)

        movement = np.sqrt(((updated - centroids) ** 2).sum(axis=1))
        if np.all(movement < tolerance):
            break

        centroids = updated
        iterations += 1

    return KMeansResult(
        centroids=centroids,
        assignments=nearest_centroid(data, centroids),
        iterations=iterations,
    )


def silhouette_score(data: np.ndarray, assignments: np.ndarray) -> float:
    """Mean per-point ``(b - a) / max(a, b)``, undefined points count as 0.

    ``a`` is the mean distance to the other members of the point's cluster (0
    for a singleton), ``b`` the smallest mean distance to another non-empty
    cluster. With a single cluster ``b`` is undefined and every point scores 0.
    """
    n = data.shape[0]
    if n < 2:
        return 0.0

    distances = pairwise_distances(data)
    labels = np.unique(assignments)
    total = 0.0

    for i in range(n):
        own = assignments[i]
        same = (assignments == own)
        same[i] = False
        a = float(distances[i, same].mean()) if same.any() else 0.0

        b = np.inf
        for label in labels:
            if label == own:
                continue
            b = min(b, float(distances[i, assignments == label].mean()))

        scale = max(a, b)
        if not np.isfinite(b) or scale == 0.0:
            continue
        total += (b - a) / scale

    return clamp(total / n, -1.0, 1.0)


def most_frequent(items: Sequence[Any]) -> Optional[Any]:
    """Most common item; the first one seen wins ties."""
    if not items:
        return None
    return Counter(items).most_common(1)[0][0]


class ClusterDetector:
    """Clusters the events of one category with K-means."""

    def __init__(
        self,
        extractor: FeatureExtractor,
        k: int = 3,
        min_points: int = 5,
        max_iterations: int = 100,
        tolerance: float = 0.001,
        seed: Optional[int] = None,
        require_seed: bool = False,
    ):
        """Initialize cluster detector.

        Args:
            extractor: Feature extractor providing normalized vectors
            k: Number of clusters
            min_points: Minimum events before a category is clustered
            max_iterations: Iteration cap for K-means
            tolerance: Centroid movement below which K-means has converged
            seed: Seed for centroid sampling; None draws fresh OS entropy
            require_seed: Raise ``MissingSeedError`` when ``seed`` is None

        Raises:
            MissingSeedError: ``require_seed`` is set and no seed was given
        """
        if seed is None and require_seed:
            raise MissingSeedError("ClusterDetector requires an explicit seed")
        self.extractor = extractor
        self.k = k
        self.min_points = min_points
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.seed = seed

    def rng_for(self, category: DataCategory) -> np.random.Generator:
        """Generator for ``category``, independent of processing order."""
        if self.seed is None:
            return np.random.default_rng()
        return np.random.default_rng([self.seed, category.ordinal])

    def feature_matrix(self, events: Sequence[Event]) -> np.ndarray:
        """Normalized numeric fields plus hour/24 and weekday/7 per event.

        Fields are the sorted union over the category; an event lacking a
        field contributes 0 for it.
        """
        vectors = [self.extractor.extract(event) for event in events]
        names = sorted({f.name for v in vectors for f in v.numerical_features})
        rows = [
            v.normalized(names)
            + [v.temporal.hour_of_day / 24, v.temporal.day_of_week / 7]
            for v in vectors
        ]
        return np.asarray(rows, dtype=float)

    def detect(
        self, events: Sequence[Event], rng: Optional[np.random.Generator] = None
    ) -> Optional[ClusterAnalysis]:
        """Cluster ``events``; None when the category has too few events."""
        if len(events) < max(self.min_points, self.k):
            return None

        category = events[0].category
        data = self.feature_matrix(events)
        result = kmeans(
            data,
            self.k,
            rng if rng is not None else self.rng_for(category),
            max_iterations=self.max_iterations,
            tolerance=self.tolerance,
        )

        clusters = []
        for cluster_id in range(self.k):
            members = [e for e, label in zip(events, result.assignments) if label == cluster_id]
            clusters.append(
                Cluster(
                    cluster_id=cluster_id,
                    members=members,
                    center=self._center(members),
                    characteristics=self._characteristics(members),
                )
            )

        silhouette = silhouette_score(data, result.assignments)
        logger.debug(
            f"Clustered {len(events)} {category.value} events into "
            f"{sum(1 for c in clusters if c.size)} groups "
            f"(iterations={result.iterations}, silhouette={silhouette:.3f})"
        )

        return ClusterAnalysis(
            category=category,
            clusters=clusters,
            silhouette=silhouette,
            iterations=result.iterations,
            assignments=[int(label) for label in result.assignments],
            description=describe_clusters(category, clusters),
        )

    def _center(self, members: Sequence[Event]) -> Optional[ClusterCenter]:
        if not members:
            return None
        values = np.asarray([numeric_value(e) for e in members], dtype=float)
        return ClusterCenter(
            mean=float(values.mean()),
            min=float(values.min()),
            max=float(values.max()),
            std_dev=float(values.std()),
        )

    def _characteristics(self, members: Sequence[Event]) -> ClusterCharacteristics:
        temporal = [self.extractor.temporal_features(e.timestamp, e.event_id) for e in members]
        time_of_day = most_frequent([t.time_of_day for t in temporal])
        return ClusterCharacteristics(
            dominant_hour_of_day=most_frequent([t.hour_of_day for t in temporal]),
            dominant_day_of_week=most_frequent([t.day_of_week for t in temporal]),
            dominant_time_of_day=time_of_day.value if time_of_day is not None else None,
            dominant_source=most_frequent([e.source for e in members]),
        )


def describe_clusters(category: DataCategory, clusters: Sequence[Cluster]) -> str:
    total = sum(c.size for c in clusters)
    parts = []
    for index, cluster in enumerate(clusters):
        share = round(cluster.size / total * 100) if total else 0
        time_of_day = cluster.characteristics.dominant_time_of_day or "no"
        parts.append(f"Cluster {index + 1}: {share}% of data points, {time_of_day} patterns")
    return (
        f"Identified {len(clusters)} distinct {category.value} patterns: "
        f"{', '.join(parts)}"
    )
