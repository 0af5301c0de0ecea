#!/usr/bin/env python3
"""
Monitoring and Logging
Structured logging, Prometheus metrics, request monitoring and health
status for the recipe scaler service.
"""

import os
import sys
import time
import socket
import logging
from typing import Dict, Any, Tuple
from datetime import datetime
from dataclasses import dataclass, asdict
from enum import Enum
from functools import wraps

import psutil
import structlog
from structlog.stdlib import LoggerFactory
from prometheus_client import (
    Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST
)
from flask import Flask, g, request


# Configuration
class MonitoringConfig:
    """Configuration for monitoring and logging."""

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")  # json or text

    # Service info
    SERVICE_NAME = os.getenv("SERVICE_NAME", "recipe-scaler")
    SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    HOSTNAME = socket.gethostname()

config = MonitoringConfig()


class HealthStatus(Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def configure_logging(log_level: str = None, log_format: str = None):
    """Configure structured logging with Structlog."""
    level = (log_level or config.LOG_LEVEL).upper()
    renderer_format = log_format or config.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO)
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if renderer_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

configure_logging()
logger = structlog.get_logger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)
REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)

# Scaling metrics
SCALE_REQUESTS = Counter(
    'ingredient_scale_requests_total',
    'Total ingredient list scaling requests',
    ['source']
)
LINES_SCALED = Counter(
    'ingredient_lines_scaled_total',
    'Ingredient lines processed by the scaler',
    ['result']
)

# Cache metrics
CACHE_OPERATIONS = Counter(
    'cache_operations_total',
    'Total cache operations',
    ['operation', 'cache_type', 'result']
)

# Service info
SERVICE_INFO = Info(
    'service_info',
    'Service information'
)
SERVICE_INFO.info({
    'version': config.SERVICE_VERSION,
    'environment': config.ENVIRONMENT,
    'hostname': config.HOSTNAME
})


@dataclass
class SystemMetrics:
    """System performance metrics."""
    cpu_percent: float
    memory_percent: float
    timestamp: datetime


def get_system_metrics() -> SystemMetrics:
    """Collect a snapshot of process host metrics."""
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=psutil.virtual_memory().percent,
        timestamp=datetime.utcnow()
    )


def record_scaled_lines(original_lines, scaled_lines, source: str):
    """Count one scaling request and how many lines actually changed."""
    SCALE_REQUESTS.labels(source=source).inc()
    for original, scaled in zip(original_lines, scaled_lines):
        LINES_SCALED.labels(result="scaled" if original != scaled else "unchanged").inc()


class RequestMonitoring:
    """Request hooks recording HTTP metrics for a Flask app."""

    def __init__(self, app: Flask):
        self.app = app
        app.before_request(self._start_timer)
        app.after_request(self._record_request)

    def _start_timer(self):
        g.request_start_time = time.time()

    def _record_request(self, response):
        start_time = getattr(g, "request_start_time", None)
        duration = time.time() - start_time if start_time else 0.0

        endpoint = request.url_rule.rule if request.url_rule else "unmatched"
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code
        ).inc()
        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        logger.info(
            "HTTP request",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration=duration
        )
        return response


def track_execution_time(operation_name: str):
    """Decorator to log execution time of an operation."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "Operation failed",
                    operation=operation_name,
                    duration=time.time() - start_time,
                    error=str(e),
                    success=False
                )
                raise

            logger.debug(
                "Operation completed",
                operation=operation_name,
                duration=time.time() - start_time,
                success=True
            )
            return result
        return wrapper
    return decorator


def get_health_status() -> Dict[str, Any]:
    """Get overall health status."""
    system_metrics = get_system_metrics()
    status = HealthStatus.HEALTHY
    if system_metrics.memory_percent > 95:
        status = HealthStatus.DEGRADED

    return {
        "status": status.value,
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
        "system": {
            key: value for key, value in asdict(system_metrics).items()
            if key != "timestamp"
        }
    }


def get_metrics() -> Tuple[bytes, str]:
    """Get Prometheus metrics payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
