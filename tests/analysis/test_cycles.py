"""Tests for daily, weekly and monthly cycle detection."""

import pytest

from lifeos.analysis.cycles import CycleDetector, score_profile
from lifeos.analysis.results import CyclePeriod

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class TestScoreProfile:
    def test_flat_profile_scores_zero(self):
        assert score_profile([5.0] * 24) == 0.0

    def test_empty_profile_scores_zero(self):
        assert score_profile([]) == 0.0

    def test_score_is_clamped(self):
        assert score_profile([0.0, 1000.0]) == 1.0

    def test_variance_over_mean_squared(self):
        # mean 1, population variance 1 -> 1 / (1 + 1)
        assert score_profile([0.0, 2.0]) == pytest.approx(0.5)


class TestCycleDetector:
    """Test cycle detection over events."""

    def test_profiles_cover_all_periods(self, extractor, series_factory):
        profiles = CycleDetector(extractor).profiles(series_factory([1, 2, 3]))
        assert [p.period for p in profiles] == [
            CyclePeriod.DAILY,
            CyclePeriod.WEEKLY,
            CyclePeriod.MONTHLY,
        ]
        assert [len(p.averages) for p in profiles] == [24, 7, 31]

    def test_daily_rhythm(self, extractor, event_factory):
        events = []
        for day in range(14):
            base = day * DAY_MS
            events.append(event_factory(f"am-{day}", 100, timestamp=base + 9 * HOUR_MS))
            events.append(event_factory(f"pm-{day}", 10, timestamp=base + 21 * HOUR_MS))

        cycles = CycleDetector(extractor).detect(events)
        daily = [c for c in cycles if c.period is CyclePeriod.DAILY]

        assert len(daily) == 1
        assert daily[0].peak_bucket == 9
        assert daily[0].profile[9] == pytest.approx(100.0)
        assert daily[0].profile[21] == pytest.approx(10.0)
        assert 0.0 <= daily[0].strength <= 1.0
        assert daily[0].insight_id == "cycle:health:daily"
        assert "around 09:00" in daily[0].description

    def test_weekday_bucket_uses_sunday_zero(self, extractor, event_factory):
        # 1970-01-04 was a Sunday
        sunday = 3 * DAY_MS
        events = [event_factory(f"e{i}", 50, timestamp=sunday + i * 7 * DAY_MS) for i in range(4)]
        weekly = CycleDetector(extractor).profiles(events)[1]
        assert weekly.peak_bucket == 0
        assert weekly.averages[0] == pytest.approx(50.0)

    def test_uniform_values_have_no_cycles(self, extractor, event_factory):
        # Every hour of every weekday and every day of month carries the same value
        events = [
            event_factory(f"e{i}", 10, timestamp=i * HOUR_MS)
            for i in range(24 * 7 * 31)
        ]
        assert CycleDetector(extractor).detect(events) == []

    def test_threshold_is_exclusive(self, extractor, series_factory):
        events = series_factory([1, 2, 3])
        strengths = {p.period: p.strength for p in CycleDetector(extractor).profiles(events)}
        detector = CycleDetector(extractor, min_strength=strengths[CyclePeriod.DAILY])
        assert CyclePeriod.DAILY not in [c.period for c in detector.detect(events)]

    def test_empty_input(self, extractor):
        assert CycleDetector(extractor).detect([]) == []
