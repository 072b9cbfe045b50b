"""Typed settings management for the LifeOS pattern engine.

This module wraps engine tuning in Pydantic models so the orchestrator, the
detectors and the CLI can rely on validated thresholds. Settings live in a
JSON file and can be overridden from ``LIFEOS_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from lifeos.errors import InvalidConfigError


DEFAULT_CONFIG_PATH = Path.home() / ".lifeos" / "config.json"

DEFAULT_FEATURE_RANGES: Dict[str, tuple[float, float]] = {
    "steps": (0.0, 20000.0),
    "heartRate": (40.0, 120.0),
    "sleep": (0.0, 12.0),
    "amount": (0.0, 1000.0),
    "timeSpent": (0.0, 480.0),
    "weight": (100.0, 300.0),
    "energy": (1.0, 10.0),
}
DEFAULT_RANGE: tuple[float, float] = (0.0, 100.0)


class FeatureSettings(BaseModel):
    """Feature extraction configuration."""

    timezone: str = Field("UTC", description="IANA timezone for calendar features")
    feature_ranges: Dict[str, tuple[float, float]] = Field(
        default_factory=lambda: dict(DEFAULT_FEATURE_RANGES),
        description="Per-field (min, max) normalization ranges",
    )
    default_range: tuple[float, float] = Field(DEFAULT_RANGE)

    @field_validator("timezone")
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class TrendSettings(BaseModel):
    """Trend detection thresholds."""

    min_points: int = Field(3, ge=2)
    min_confidence: float = Field(0.7, ge=0.0, le=1.0)


class CycleSettings(BaseModel):
    """Cycle detection thresholds."""

    min_strength: float = Field(0.6, ge=0.0, le=1.0)


class CorrelationSettings(BaseModel):
    """Cross-category correlation thresholds."""

    tolerance_ms: int = Field(3_600_000, ge=1, description="Alignment window")
    min_pairs: int = Field(3, ge=2)
    min_coefficient: float = Field(0.5, ge=0.0, le=1.0)
    confidence_saturation: int = Field(10, ge=1)


class AnomalySettings(BaseModel):
    """Statistical and contextual anomaly thresholds."""

    min_points: int = Field(5, ge=2)
    z_threshold: float = Field(2.5, gt=0.0)
    high_z_threshold: float = Field(3.0, gt=0.0)
    min_peers: int = Field(3, ge=1)
    contextual_deviation: float = Field(0.5, gt=0.0)


class ClusterSettings(BaseModel):
    """K-means clustering configuration."""

    k: int = Field(3, ge=1)
    min_points: int = Field(5, ge=1)
    max_iterations: int = Field(100, ge=1)
    tolerance: float = Field(0.001, gt=0.0)
    seed: Optional[int] = Field(default=None, description="Seed for centroid sampling")
    require_seed: bool = Field(False, description="Fail when no seed is configured")


class PredictionSettings(BaseModel):
    """Forecast configuration."""

    horizon: int = Field(7, ge=1, le=365)
    min_confidence: float = Field(0.5, ge=0.0, le=1.0)
    step_ms: int = Field(86_400_000, ge=1, description="Distance between forecast points")
    confidence_decay: float = Field(0.3, ge=0.0, le=1.0)


class ConfidenceSettings(BaseModel):
    """Overall confidence scoring."""

    recency_window_days: int = Field(30, ge=1)
    volume_saturation: int = Field(50, ge=1)
    pattern_strength: float = Field(0.8, ge=0.0, le=1.0)


class AnalysisSettings(BaseModel):
    """Top-level engine configuration."""

    features: FeatureSettings = Field(default_factory=FeatureSettings)
    trends: TrendSettings = Field(default_factory=TrendSettings)
    cycles: CycleSettings = Field(default_factory=CycleSettings)
    correlations: CorrelationSettings = Field(default_factory=CorrelationSettings)
    anomalies: AnomalySettings = Field(default_factory=AnomalySettings)
    clustering: ClusterSettings = Field(default_factory=ClusterSettings)
    prediction: PredictionSettings = Field(default_factory=PredictionSettings)
    confidence: ConfidenceSettings = Field(default_factory=ConfidenceSettings)


class Settings(BaseModel):
    """Root configuration state."""

    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from disk or raise if invalid."""

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at {path}")
    try:
        payload = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise InvalidConfigError(f"Settings file is not valid JSON: {exc}") from exc
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid configuration: {exc}") from exc


def save_settings(settings: Settings, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist settings to disk."""

    payload = settings.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2))


def bootstrap_settings(
    *,
    path: Path = DEFAULT_CONFIG_PATH,
    overrides: Optional[Dict[str, Any]] = None,
    persist: bool = True,
) -> Settings:
    """Create or load settings respecting explicit and environment overrides."""

    overrides = overrides or {}

    settings = load_settings(path) if path.exists() else Settings()

    merged = settings.model_dump(mode="python")
    merged = _apply_overrides(merged, overrides)
    merged = _apply_env_overrides(merged)

    try:
        resolved = Settings.model_validate(merged)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid configuration override: {exc}") from exc
    if persist:
        save_settings(resolved, path)
    return resolved


def _apply_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _apply_overrides(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    analysis = data.setdefault("analysis", {})
    features = analysis.setdefault("features", {})
    _set_env_override(features, "timezone", "LIFEOS_TIMEZONE")

    clustering = analysis.setdefault("clustering", {})
    _set_env_override(clustering, "seed", "LIFEOS_CLUSTER_SEED", cast_int=True)
    _set_env_override(clustering, "require_seed", "LIFEOS_REQUIRE_SEED", cast_bool=True)

    prediction = analysis.setdefault("prediction", {})
    _set_env_override(prediction, "horizon", "LIFEOS_PREDICTION_HORIZON", cast_int=True)
    return data


def _set_env_override(
    mapping: Dict[str, Any],
    key: str,
    env_name: str,
    *,
    cast_bool: bool = False,
    cast_int: bool = False,
) -> None:
    raw = os.getenv(env_name)
    if raw is None:
        return
    if cast_bool:
        mapping[key] = raw.lower() in {"1", "true", "yes"}
    elif cast_int:
        try:
            mapping[key] = int(raw)
        except ValueError as exc:
            raise InvalidConfigError(f"{env_name} must be an integer, got {raw!r}") from exc
    else:
        mapping[key] = raw
