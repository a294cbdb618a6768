"""Centralized error definitions for SensoryCompass.

Only a handful of failures ever surface from the analysis core: running out
of data is signalled with empty results, numeric degeneracy is absorbed
locally, and the optional model collaborator is logged and skipped. What is
left lives here.

Usage:
    from sensorycompass.errors import SerializationError, handle_error

    try:
        key = create_key("emotion-patterns", params)
    except SerializationError as e:
        print(handle_error(e))
"""

from __future__ import annotations

from sensorycompass.errors.user_messages import (
    format_error_for_user,
    get_recovery_suggestion,
    get_user_message,
)


# =============================================================================
# Base Error
# =============================================================================


class SensoryCompassError(Exception):
    """Base exception for all SensoryCompass errors.

    Attributes:
        code: Error code for categorization
        user_message: User-friendly message (optional override)
        recoverable: Whether the error is potentially recoverable
        details: Additional error details for debugging
    """

    code: str = "SENSORYCOMPASS_ERROR"
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
        """Get user-friendly message."""
        if self._user_message:
            return self._user_message
        return get_user_message(self)

    @property
    def recovery_suggestion(self) -> str:
        """Get recovery suggestion."""
        return get_recovery_suggestion(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
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


class AnalysisError(SensoryCompassError):
    """Base error for analysis operations."""

    code = "ANALYSIS_ERROR"
    default_message = "Analysis failed"


class SerializationError(AnalysisError):
    """Input could not be serialized for fingerprinting.

    Raised for circular references or objects with no canonical form.
    Always a programmer error, so it is not recoverable.
    """

    code = "SERIALIZATION_ERROR"
    default_message = "Value cannot be serialized for fingerprinting"
    recoverable = False


class InsightProviderError(AnalysisError):
    """The optional model-based insight collaborator failed."""

    code = "INSIGHT_PROVIDER_ERROR"
    default_message = "Insight provider failed"
    recoverable = True

    def __init__(
        self,
        message: str | None = None,
        *,
        cause: Exception | None = None,
    ) -> None:
        self.cause = cause
        details = {"cause": type(cause).__name__} if cause is not None else None
        super().__init__(message, details=details)


# =============================================================================
# Record Errors
# =============================================================================


class RecordError(SensoryCompassError):
    """Base error for observation record handling."""

    code = "RECORD_ERROR"
    default_message = "Observation records could not be processed"


class RecordValidationError(RecordError):
    """Records failed validation at the storage boundary."""

    code = "RECORD_VALIDATION_ERROR"
    default_message = "Observation records failed validation"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list | None = None,
    ) -> None:
        self.errors = errors or []
        super().__init__(message, details={"error_count": len(self.errors)})


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SensoryCompassError):
    """Base error for configuration issues."""

    code = "CONFIGURATION_ERROR"
    default_message = "Configuration error"
    recoverable = True


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""

    code = "INVALID_CONFIG"
    default_message = "Invalid configuration"


class MissingConfigError(ConfigurationError):
    """Configuration file is missing."""

    code = "MISSING_CONFIG"
    default_message = "Missing configuration file"


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
    """Check if an error is potentially recoverable."""
    if isinstance(error, SensoryCompassError):
        return error.recoverable
    return False


__all__ = [
    # Base
    "SensoryCompassError",
    # Analysis
    "AnalysisError",
    "SerializationError",
    "InsightProviderError",
    # Records
    "RecordError",
    "RecordValidationError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigError",
    "MissingConfigError",
    # Handlers
    "handle_error",
    "is_recoverable",
]
