"""User-friendly error messages for the LifeOS pattern engine.

Human-readable messages and recovery suggestions for every error code, so
callers (API layer, CLI) never surface raw technical errors.

Privacy Note:
- Error messages NEVER include event values
- Details are limited to identifiers and timestamps
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Message Catalog
# =============================================================================

ERROR_MESSAGES: dict[str, str] = {
    # Analysis errors
    "ANALYSIS_ERROR": "The pattern analysis couldn't be completed.",
    "FEATURE_EXTRACTION_ERROR": "An event has a timestamp that couldn't be read.",
    "INVALID_BATCH": "The submitted events couldn't be analyzed.",
    "UNKNOWN_CATEGORY": "An event uses a data category we don't recognize.",
    # Learning errors
    "LEARNING_ERROR": "Your feedback couldn't be recorded.",
    "INVALID_FEEDBACK": "The feedback you submitted is invalid.",
    # Configuration errors
    "CONFIGURATION_ERROR": "There's a configuration issue.",
    "INVALID_CONFIG": "The configuration is invalid. Check settings.",
    "MISSING_SEED": "Clustering needs a fixed seed in this configuration.",
    # Generic
    "LIFEOS_ERROR": "An unexpected error occurred. Please try again.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
}


# =============================================================================
# Recovery Suggestions
# =============================================================================

RECOVERY_SUGGESTIONS: dict[str, str] = {
    # Analysis errors
    "ANALYSIS_ERROR": "Retry the analysis. Report the issue if it persists.",
    "FEATURE_EXTRACTION_ERROR": "Timestamps must be non-negative epoch milliseconds.",
    "INVALID_BATCH": "Submit a list of events with id, dataType, source, value and timestamp.",
    "UNKNOWN_CATEGORY": "Use one of: health, finance, productivity, relationships, learning, career.",
    # Learning errors
    "LEARNING_ERROR": "Retry submitting your feedback.",
    "INVALID_FEEDBACK": "Ratings must be numbers between 0 and 1.",
    # Configuration errors
    "CONFIGURATION_ERROR": "Check config: lifeos config show",
    "INVALID_CONFIG": "Reset to defaults: lifeos config init --force",
    "MISSING_SEED": "Pass --seed or set analysis.clustering.seed in the config file.",
    # Generic
    "LIFEOS_ERROR": "If this persists, please report the issue.",
    "UNKNOWN_ERROR": "Retry the command. Report if the issue continues.",
}


# =============================================================================
# Helper Functions
# =============================================================================


def _error_code(error: Any) -> str:
    if hasattr(error, "code"):
        return error.code
    if isinstance(error, str):
        return error
    return type(error).__name__.upper()


def get_user_message(error: Any) -> str:
    """Get user-friendly message for an error.

    Args:
        error: The error (can be Exception or error code string)

    Returns:
        User-friendly error message
    """
    return ERROR_MESSAGES.get(_error_code(error), ERROR_MESSAGES["UNKNOWN_ERROR"])


def get_recovery_suggestion(error: Any) -> str:
    """Get recovery suggestion for an error.

    Args:
        error: The error (can be Exception or error code string)

    Returns:
        Recovery suggestion
    """
    return RECOVERY_SUGGESTIONS.get(
        _error_code(error), RECOVERY_SUGGESTIONS["UNKNOWN_ERROR"]
    )


def format_error_for_user(error: Any) -> str:
    """Format a complete user-friendly error message.

    Args:
        error: The error to format

    Returns:
        Complete error message with recovery suggestion
    """
    message = get_user_message(error)
    suggestion = get_recovery_suggestion(error)

    return f"{message}\n\nSuggestion: {suggestion}"


def format_error_for_cli(error: Any) -> str:
    """Format error for CLI output.

    Args:
        error: The error to format

    Returns:
        CLI-formatted error message
    """
    code = getattr(error, "code", "ERROR")

    lines = [
        f"Error [{code}]: {get_user_message(error)}",
        "",
        f"Suggestion: {get_recovery_suggestion(error)}",
    ]

    details = getattr(error, "details", None)
    if details:
        lines.append("")
        lines.append("Details:")
        for key, value in details.items():
            # Values can be personal data
            if key not in ("value", "values"):
                lines.append(f"  {key}: {value}")

    return "\n".join(lines)


__all__ = [
    "ERROR_MESSAGES",
    "RECOVERY_SUGGESTIONS",
    "get_user_message",
    "get_recovery_suggestion",
    "format_error_for_user",
    "format_error_for_cli",
]
