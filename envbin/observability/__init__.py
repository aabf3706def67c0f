"""Observability module for logging, metrics and request tracing."""

from envbin.observability.logging_config import setup_logging
from envbin.observability.metrics import MetricsCollector
from envbin.observability.middleware import ObservabilityMiddleware

__all__ = ["setup_logging", "MetricsCollector", "ObservabilityMiddleware"]
