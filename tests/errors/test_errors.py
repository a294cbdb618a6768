"""Tests for error classes and user-facing messages."""

from __future__ import annotations

from sensorycompass.errors import (
    InsightProviderError,
    InvalidConfigError,
    RecordValidationError,
    SensoryCompassError,
    SerializationError,
    handle_error,
    is_recoverable,
)
from sensorycompass.errors.user_messages import (
    format_error_for_cli,
    get_recovery_suggestion,
    get_user_message,
)


class TestErrorClasses:
    def test_default_message(self):
        error = InvalidConfigError()
        assert error.message == "Invalid configuration"
        assert str(error) == "Invalid configuration"

    def test_to_dict(self):
        error = InvalidConfigError("bad section", details={"section": "nope"})
        assert error.to_dict() == {
            "code": "INVALID_CONFIG",
            "message": "bad section",
            "user_message": "The analytics configuration is invalid.",
            "recoverable": True,
            "details": {"section": "nope"},
        }

    def test_user_message_override(self):
        error = SensoryCompassError("internal", user_message="Try again later")
        assert error.user_message == "Try again later"

    def test_serialization_error_is_not_recoverable(self):
        assert is_recoverable(SerializationError()) is False
        assert is_recoverable(InvalidConfigError()) is True
        assert is_recoverable(ValueError("plain")) is False

    def test_insight_provider_error_keeps_cause(self):
        cause = RuntimeError("model offline")
        error = InsightProviderError("failed", cause=cause)
        assert error.cause is cause
        assert error.details == {"cause": "RuntimeError"}

    def test_record_validation_error_counts_errors(self):
        error = RecordValidationError("bad", errors=[{"loc": ("intensity",)}, {"loc": ("timestamp",)}])
        assert error.details == {"error_count": 2}


class TestUserMessages:
    def test_lookup_by_code_string(self):
        assert get_user_message("MISSING_CONFIG") == "The analytics configuration file is missing."

    def test_unknown_error_falls_back(self):
        assert get_user_message(KeyError("x")) == "Something went wrong. Please try again."
        assert "Retry" in get_recovery_suggestion(KeyError("x"))

    def test_handle_error_includes_suggestion(self):
        text = handle_error(InvalidConfigError())
        assert "Suggestion: Reset to defaults: sensorycompass config reset" in text

    def test_cli_format_hides_free_text_details(self):
        error = SensoryCompassError("x", details={"notes": "private observation", "record": "e1"})
        text = format_error_for_cli(error)
        assert text.startswith("Error [SENSORYCOMPASS_ERROR]")
        assert "record: e1" in text
        assert "private observation" not in text
