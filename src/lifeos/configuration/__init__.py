"""Configuration loading utilities for the LifeOS pattern engine."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    AnalysisSettings,
    Settings,
    bootstrap_settings,
    load_settings,
    save_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AnalysisSettings",
    "Settings",
    "bootstrap_settings",
    "load_settings",
    "save_settings",
]
