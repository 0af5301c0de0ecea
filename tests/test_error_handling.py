"""Tests for application errors and error context tracking."""
import pytest
from marshmallow import Schema, fields

from api.error_handling import (
    ErrorCategory, ErrorSeverity, RecipeAppError, ValidationError,
    create_error_context, handle_known_errors, init_error_tracking
)


class QuantitySchema(Schema):
    amount = fields.Float(required=True)


def test_recipe_app_error_payload():
    error = RecipeAppError("boom", details={"line": 3})
    payload = error.to_dict()

    assert payload["code"] == "RecipeAppError"
    assert payload["severity"] == ErrorSeverity.MEDIUM.value
    assert payload["category"] == ErrorCategory.PROCESSING.value
    assert payload["details"] == {"line": 3}
    assert payload["trace_id"] == error.trace_id


def test_validation_error_defaults():
    error = ValidationError("bad input", validation_errors=["scale_factor: required"])
    assert error.category is ErrorCategory.VALIDATION
    assert error.severity is ErrorSeverity.LOW
    assert error.to_dict()["validation_errors"] == ["scale_factor: required"]


def test_error_context_records_and_reraises():
    context = create_error_context("scale_recipe", component="test")

    with pytest.raises(ValidationError):
        with context:
            raise ValidationError("bad factor")

    assert context.error_details.error_code == "ValidationError"
    assert context.error_details.component == "test"
    assert context.error_details.details["exception_type"] == "ValidationError"


def test_error_context_success_has_no_details():
    with create_error_context("noop") as context:
        pass
    assert context.error_details is None


def test_handle_known_errors_converts_value_errors():
    @handle_known_errors
    def export(format):
        raise ValueError(f"Unsupported format: {format}")

    with pytest.raises(ValidationError) as excinfo:
        export("pdf")
    assert "Unsupported format: pdf" in excinfo.value.message


def test_handle_known_errors_converts_schema_errors():
    @handle_known_errors
    def load(data):
        return QuantitySchema().load(data)

    with pytest.raises(ValidationError) as excinfo:
        load({})
    assert excinfo.value.validation_errors == ["amount: Missing data for required field."]


def test_handle_known_errors_passes_other_errors_through():
    @handle_known_errors
    def fail():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        fail()


def test_error_tracking_disabled_without_dsn(monkeypatch):
    monkeypatch.setattr("api.error_handling.config.SENTRY_DSN", None)
    assert init_error_tracking() is False


def test_errors_captured_after_tracking_initialized_from_dsn(monkeypatch):
    from api import error_handling

    calls = []
    monkeypatch.setattr(error_handling, "_tracking_enabled", False)
    monkeypatch.setattr(error_handling.config, "ENABLE_ERROR_TRACKING", True)
    monkeypatch.setattr(error_handling.config, "SENTRY_DSN", None)
    monkeypatch.setattr(error_handling.sentry_sdk, "init", lambda **kwargs: calls.append("init"))
    monkeypatch.setattr(error_handling.sentry_sdk, "capture_exception", lambda exc: calls.append("capture"))

    error_handling._capture(RuntimeError("before init"), {})
    assert calls == []

    assert init_error_tracking("https://key@example.invalid/1") is True
    error_handling._capture(RuntimeError("boom"), {"component": "scaler"})
    assert calls == ["init", "capture"]
