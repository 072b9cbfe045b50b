"""Insight vocabulary shared by the detectors and the learning profile."""

from __future__ import annotations

from enum import Enum


class InsightType(str, Enum):
    """Kinds of finding the engine reports."""

    TREND = "trend"
    CYCLE = "cycle"
    CORRELATION = "correlation"
    ANOMALY = "anomaly"
    CLUSTER = "cluster"
    PREDICTION = "prediction"
