"""Centralized error definitions for the LifeOS pattern engine.

Malformed or insufficient *data* never raises: detectors degrade to "no
finding" for the affected category. Only structurally invalid input aborts an
analysis call, and callers should treat those errors as fatal to the request,
not to the process.

Usage:
    from lifeos.errors import (
        LifeOSError,
        InvalidBatchError,
        handle_error,
    )

    try:
        result, profile = orchestrator.analyze(events)
    except LifeOSError as e:
        user_message = handle_error(e)
        print(user_message)
"""

from __future__ import annotations

from lifeos.errors.user_messages import (
    get_user_message,
    get_recovery_suggestion,
    format_error_for_user,
)


# =============================================================================
# Base Error
# =============================================================================


class LifeOSError(Exception):
    """Base exception for all LifeOS errors.

    Attributes:
        code: Stable identifier used by the message catalog and CLI output
        user_message: Overrides the catalog message when set
        recoverable: False when retrying the same request cannot succeed
        details: Identifiers (event id, field, position); never raw values
    """

    code: str = "LIFEOS_ERROR"
    default_message: str = "An unexpected error occurred"
    recoverable: bool = True

    def __init__(
        self,
        message: str | None = None,
        *,
        user_message: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message or self.default_message
        self._user_message = user_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Catalog message for this error code, unless overridden."""
        if self._user_message:
            return self._user_message
        return get_user_message(self)

    @property
    def recovery_suggestion(self) -> str:
        """What the caller can change to make the request succeed."""
        return get_recovery_suggestion(self)

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "details": self.details,
        }


# =============================================================================
# Analysis Errors
# =============================================================================


class AnalysisError(LifeOSError):
    """Base error for pattern analysis."""

    code = "ANALYSIS_ERROR"
    default_message = "Pattern analysis failed"


class FeatureExtractionError(AnalysisError):
    """An event carries a timestamp that cannot be interpreted."""

    code = "FEATURE_EXTRACTION_ERROR"
    default_message = "Could not extract features from event"

    def __init__(
        self,
        message: str | None = None,
        *,
        event_id: str | None = None,
        timestamp: object = None,
    ) -> None:
        self.event_id = event_id
        self.timestamp = timestamp
        super().__init__(
            message,
            details={"event_id": event_id, "timestamp": repr(timestamp)},
        )


class InvalidBatchError(AnalysisError):
    """The event batch is structurally invalid."""

    code = "INVALID_BATCH"
    default_message = "Event batch is invalid"


class UnknownCategoryError(InvalidBatchError):
    """An event names a data category outside the known set."""

    code = "UNKNOWN_CATEGORY"
    default_message = "Unknown data category"

    def __init__(self, category: object, *, message: str | None = None) -> None:
        self.category = category
        super().__init__(
            message or f"Unknown data category: {category!r}",
            details={"category": repr(category)},
        )


# =============================================================================
# Learning Errors
# =============================================================================


class LearningError(LifeOSError):
    """Base error for learning profile operations."""

    code = "LEARNING_ERROR"
    default_message = "Learning profile operation failed"


class InvalidFeedbackError(LearningError):
    """Submitted feedback is malformed."""

    code = "INVALID_FEEDBACK"
    default_message = "Feedback is invalid"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(LifeOSError):
    """Base error for configuration issues."""

    code = "CONFIGURATION_ERROR"
    default_message = "Configuration error"
    recoverable = True


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""

    code = "INVALID_CONFIG"
    default_message = "Invalid configuration"


class MissingSeedError(ConfigurationError):
    """Clustering was requested without a seed while seeds are required."""

    code = "MISSING_SEED"
    default_message = "A clustering seed is required"


# =============================================================================
# Error Handler
# =============================================================================


def handle_error(error: Exception) -> str:
    """Handle an error and return a user-friendly message.

    Args:
        error: The exception to handle

    Returns:
        User-friendly error message with recovery suggestion
    """
    return format_error_for_user(error)


def is_recoverable(error: Exception) -> bool:
    """Check if an error is potentially recoverable.

    Args:
        error: The exception to check

    Returns:
        True if the error is recoverable
    """
    if isinstance(error, LifeOSError):
        return error.recoverable
    return False


__all__ = [
    # Base
    "LifeOSError",
    # Analysis
    "AnalysisError",
    "FeatureExtractionError",
    "InvalidBatchError",
    "UnknownCategoryError",
    # Learning
    "LearningError",
    "InvalidFeedbackError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigError",
    "MissingSeedError",
    # Handlers
    "handle_error",
    "is_recoverable",
]
