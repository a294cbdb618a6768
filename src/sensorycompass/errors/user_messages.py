"""User-friendly error messages for SensoryCompass.

Maps error codes to short, human-readable messages and recovery hints so
that report and CLI callers never have to show raw tracebacks.

Privacy Note:
- Messages NEVER include observation notes or subject identifiers
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Message Catalog
# =============================================================================

ERROR_MESSAGES: dict[str, str] = {
    # Analysis errors
    "ANALYSIS_ERROR": "The analysis couldn't be completed. Please try again.",
    "SERIALIZATION_ERROR": "Some of the analysis input couldn't be fingerprinted.",
    "INSIGHT_PROVIDER_ERROR": "Model-based insights are unavailable right now.",
    # Record errors
    "RECORD_ERROR": "A problem was found in the observation records.",
    "RECORD_VALIDATION_ERROR": "Some observation records are malformed.",
    # Configuration errors
    "CONFIGURATION_ERROR": "There's a configuration issue.",
    "INVALID_CONFIG": "The analytics configuration is invalid.",
    "MISSING_CONFIG": "The analytics configuration file is missing.",
    # Generic
    "SENSORYCOMPASS_ERROR": "An unexpected error occurred. Please try again.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
}


# =============================================================================
# Recovery Suggestions
# =============================================================================

RECOVERY_SUGGESTIONS: dict[str, str] = {
    # Analysis errors
    "ANALYSIS_ERROR": "Check that the records cover the requested time window.",
    "SERIALIZATION_ERROR": "Pass plain records; circular or custom objects can't be cached.",
    "INSIGHT_PROVIDER_ERROR": "Statistical insights are still shown. Retry later for model insights.",
    # Record errors
    "RECORD_ERROR": "Re-export the records from storage and retry.",
    "RECORD_VALIDATION_ERROR": "Intensities must be whole numbers from 1 to 5 and every record needs a timestamp.",
    # Configuration errors
    "CONFIGURATION_ERROR": "Check config: sensorycompass config show",
    "INVALID_CONFIG": "Reset to defaults: sensorycompass config reset",
    "MISSING_CONFIG": "Create it with: sensorycompass config reset",
    # Generic
    "SENSORYCOMPASS_ERROR": "If this persists, please report the issue.",
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
    """Format a complete user-friendly error message with recovery suggestion."""
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
    message = get_user_message(error)
    suggestion = get_recovery_suggestion(error)
    code = getattr(error, "code", "ERROR")

    lines = [
        f"Error [{code}]: {message}",
        "",
        f"Suggestion: {suggestion}",
    ]

    if getattr(error, "details", None):
        lines.append("")
        lines.append("Details:")
        for key, value in error.details.items():
            # Free-text notes can hold sensitive observations
            if key not in ("notes", "content"):
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
