"""Pattern recognition over personal-data events.

Detects temporal correlations, trends, cycles, anomalies and clusters in
timestamped events, forecasts short-horizon values, and scores how far the
findings can be trusted.

Capabilities:
- **Feature Extraction**: Calendar, normalized numeric and categorical features
- **Trend Detection**: Least-squares slope and R² per category
- **Cycle Detection**: Daily, weekly and monthly bucket profiles
- **Correlation Detection**: Pearson coefficient over time-aligned readings
- **Anomaly Detection**: Z-score outliers and time-slot outliers
- **Clustering**: Seeded K-means with silhouette scoring
- **Prediction**: Linear extrapolation with decaying confidence
"""

from .anomalies import AnomalyDetector
from .clustering import ClusterDetector
from .correlation_detector import CorrelationDetector
from .cycles import CycleDetector
from .features import FeatureExtractor, FeatureVector
from .orchestrator import AnalysisOrchestrator, analyze_events
from .prediction import PredictionEngine
from .results import (
    AnalysisResult,
    Anomaly,
    Cluster,
    ClusterAnalysis,
    Correlation,
    Cycle,
    DataQuality,
    Prediction,
    Trend,
)
from .trends import TrendDetector

__all__ = [
    "AnalysisOrchestrator",
    "AnalysisResult",
    "Anomaly",
    "AnomalyDetector",
    "Cluster",
    "ClusterAnalysis",
    "ClusterDetector",
    "Correlation",
    "CorrelationDetector",
    "Cycle",
    "CycleDetector",
    "DataQuality",
    "FeatureExtractor",
    "FeatureVector",
    "Prediction",
    "PredictionEngine",
    "Trend",
    "TrendDetector",
    "analyze_events",
]
