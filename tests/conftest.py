"""Shared fixtures for the pattern engine tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Sequence

import pytest

from lifeos.analysis.features import FeatureExtractor
from lifeos.configuration.settings import AnalysisSettings
from lifeos.models.events import DataCategory, Event

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

# Monday 2024-01-01 09:00 UTC
BASE_TS = int(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc).timestamp() * 1000)


def make_event(
    event_id: str,
    value,
    timestamp: int = BASE_TS,
    category: DataCategory = DataCategory.HEALTH,
    source: str = "manual",
) -> Event:
    return Event(
        event_id=event_id,
        category=category,
        source=source,
        value=value,
        timestamp=timestamp,
    )


def daily_series(
    values: Sequence[float],
    category: DataCategory = DataCategory.HEALTH,
    start: int = BASE_TS,
    step_ms: int = DAY_MS,
    prefix: str = "evt",
) -> List[Event]:
    """One event per step carrying ``values`` in order."""
    return [
        make_event(
            f"{prefix}-{category.value}-{index}",
            value,
            timestamp=start + index * step_ms,
            category=category,
        )
        for index, value in enumerate(values)
    ]


@pytest.fixture
def event_factory() -> Callable[..., Event]:
    return make_event


@pytest.fixture
def series_factory() -> Callable[..., List[Event]]:
    return daily_series


@pytest.fixture
def extractor() -> FeatureExtractor:
    return FeatureExtractor()


@pytest.fixture
def settings() -> AnalysisSettings:
    """Deterministic engine settings: clustering must be seeded."""
    return AnalysisSettings.model_validate(
        {"clustering": {"seed": 42, "require_seed": True}}
    )


@pytest.fixture
def as_of() -> int:
    """Reference time one day after a month of daily readings."""
    return BASE_TS + 31 * DAY_MS
