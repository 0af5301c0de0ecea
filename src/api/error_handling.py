#!/usr/bin/env python3
"""
Error Handling
Application exception hierarchy, error tracking and Flask error handlers
for the recipe scaler service.
"""

import os
import uuid
import time
import traceback
from typing import Dict, List, Optional, Any, Callable
from datetime import datetime
from dataclasses import dataclass
from enum import Enum
from functools import wraps

import structlog
import sentry_sdk
from flask import Flask, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from prometheus_client import Counter
from werkzeug.exceptions import HTTPException

# Metrics
ERROR_COUNTER = Counter('errors_total', 'Total errors by type and severity', ['error_type', 'severity', 'component'])

# Setup logging
logger = structlog.get_logger(__name__)

# Configuration
class ErrorHandlingConfig:
    """Configuration for error handling system."""

    ENABLE_ERROR_TRACKING = bool(os.getenv("ENABLE_ERROR_TRACKING", "true").lower() == "true")
    SENTRY_DSN = os.getenv("SENTRY_DSN")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

config = ErrorHandlingConfig()

_tracking_enabled = False

# Enums
class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

class ErrorCategory(Enum):
    VALIDATION = "validation"
    PROCESSING = "processing"
    UNKNOWN = "unknown"

# Custom Exceptions
class RecipeAppError(Exception):
    """Base exception for recipe application errors."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM, category: ErrorCategory = ErrorCategory.PROCESSING):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.severity = severity
        self.category = category
        self.timestamp = datetime.utcnow()
        self.trace_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details
        }

class ValidationError(RecipeAppError):
    """Error during request or data validation."""

    def __init__(self, message: str, validation_errors: List[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.validation_errors = validation_errors or []

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["validation_errors"] = self.validation_errors
        return payload

# Data Classes
@dataclass
class ErrorDetails:
    """Detailed error information."""
    error_id: str
    error_code: str
    message: str
    severity: ErrorSeverity
    category: ErrorCategory
    timestamp: datetime
    trace_id: str
    component: str
    operation: str
    details: Dict[str, Any]
    stack_trace: Optional[str] = None


def init_error_tracking(dsn: str = None) -> bool:
    """Initialize Sentry when a DSN is configured."""
    global _tracking_enabled
    dsn = dsn or config.SENTRY_DSN
    if not (config.ENABLE_ERROR_TRACKING and dsn):
        return False

    sentry_sdk.init(dsn=dsn, environment=config.ENVIRONMENT)
    _tracking_enabled = True
    logger.info("Error tracking initialized", environment=config.ENVIRONMENT)
    return True


def _capture(exception: Exception, tags: Dict[str, str]):
    if not _tracking_enabled:
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            scope.set_tag(key, value)
        sentry_sdk.capture_exception(exception)


class ErrorContext:
    """Context manager for error logging and tracking around an operation."""

    def __init__(self, operation: str, component: str = "unknown"):
        self.operation = operation
        self.component = component
        self.start_time = None
        self.error_details = None

    def __enter__(self):
        self.start_time = time.time()
        logger.debug(f"Starting operation: {self.operation}", component=self.component)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time

        if exc_type is None:
            logger.debug(
                f"Operation completed successfully: {self.operation}",
                component=self.component,
                duration=duration
            )
        else:
            self.error_details = self._create_error_details(exc_val, duration)
            self._handle_error(exc_val, self.error_details)

        return False

    def _create_error_details(self, exception: Exception, duration: float) -> ErrorDetails:
        """Create detailed error information."""
        if isinstance(exception, RecipeAppError):
            severity = exception.severity
            category = exception.category
            error_code = exception.error_code
            details = exception.details
        else:
            severity = ErrorSeverity.MEDIUM
            category = ErrorCategory.UNKNOWN
            error_code = type(exception).__name__
            details = {}

        return ErrorDetails(
            error_id=str(uuid.uuid4()),
            error_code=error_code,
            message=str(exception),
            severity=severity,
            category=category,
            timestamp=datetime.utcnow(),
            trace_id=getattr(exception, 'trace_id', str(uuid.uuid4())),
            component=self.component,
            operation=self.operation,
            details={
                **details,
                'duration': duration,
                'exception_type': type(exception).__name__
            },
            stack_trace=traceback.format_exc()
        )

    def _handle_error(self, exception: Exception, error_details: ErrorDetails):
        """Handle error with logging, metrics and tracking."""
        ERROR_COUNTER.labels(
            error_type=error_details.error_code,
            severity=error_details.severity.value,
            component=error_details.component
        ).inc()

        logger.error(
            f"Error in {error_details.operation}",
            error_id=error_details.error_id,
            error_code=error_details.error_code,
            severity=error_details.severity.value,
            category=error_details.category.value,
            details=error_details.details
        )

        _capture(exception, {
            "component": error_details.component,
            "operation": error_details.operation,
            "severity": error_details.severity.value,
        })


def handle_known_errors(func: Callable) -> Callable:
    """Decorator to convert known exceptions to application errors."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RecipeAppError:
            raise
        except SchemaValidationError as e:
            raise ValidationError("Request validation failed",
                                  validation_errors=_flatten_messages(e.messages))
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid value: {e}")

    return wrapper


def create_error_context(operation: str, **kwargs) -> ErrorContext:
    """Create error context for operation tracking."""
    return ErrorContext(operation, **kwargs)


def _flatten_messages(messages: Any, prefix: str = "") -> List[str]:
    """Flatten marshmallow error messages into "field: message" strings."""
    if isinstance(messages, dict):
        flattened = []
        for field, value in messages.items():
            field_prefix = f"{prefix}.{field}" if prefix else str(field)
            flattened.extend(_flatten_messages(value, field_prefix))
        return flattened
    if isinstance(messages, list):
        flattened = []
        for value in messages:
            flattened.extend(_flatten_messages(value, prefix))
        return flattened
    return [f"{prefix}: {messages}" if prefix else str(messages)]


def register_error_handlers(app: Flask):
    """Register JSON error handlers on a Flask app."""

    @app.errorhandler(ValidationError)
    def validation_error_handler(exc: ValidationError):
        ERROR_COUNTER.labels(
            error_type=exc.error_code,
            severity=exc.severity.value,
            component="web"
        ).inc()
        logger.warning("Validation failed", path=request.path, errors=exc.validation_errors)
        return jsonify({"error": exc.to_dict()}), 400

    @app.errorhandler(SchemaValidationError)
    def schema_validation_error_handler(exc: SchemaValidationError):
        return validation_error_handler(
            ValidationError("Request validation failed",
                            validation_errors=_flatten_messages(exc.messages))
        )

    @app.errorhandler(RecipeAppError)
    def recipe_app_error_handler(exc: RecipeAppError):
        ERROR_COUNTER.labels(
            error_type=exc.error_code,
            severity=exc.severity.value,
            component="web"
        ).inc()
        logger.error("Request failed", path=request.path, error_code=exc.error_code,
                     trace_id=exc.trace_id)
        return jsonify({"error": exc.to_dict()}), 500

    @app.errorhandler(Exception)
    def general_exception_handler(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc

        error_id = str(uuid.uuid4())
        logger.error(
            f"Unhandled exception: {type(exc).__name__}",
            error_id=error_id,
            error=str(exc),
            path=request.path,
            method=request.method
        )
        ERROR_COUNTER.labels(
            error_type=type(exc).__name__,
            severity=ErrorSeverity.HIGH.value,
            component="web"
        ).inc()
        _capture(exc, {"error_id": error_id})

        return jsonify({
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "error_id": error_id
            }
        }), 500
