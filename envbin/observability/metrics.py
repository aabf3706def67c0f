"""CloudWatch metrics collection for fault injection monitoring."""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects and sends metrics to CloudWatch."""

    def __init__(self, namespace="Envbin", enabled=None):
        """
        Initialize the metrics collector.

        Args:
            namespace: CloudWatch metrics namespace
            enabled: Whether metrics are enabled (defaults to env var)
        """
        self.namespace = namespace
        self.enabled = (
            enabled
            if enabled is not None
            else os.getenv("ENABLE_CLOUDWATCH_METRICS", "false").lower()
            == "true"
        )
        self.client = None

        if self.enabled:
            import boto3

            self.client = boto3.client(
                "cloudwatch",
                region_name=os.getenv("AWS_REGION", "us-east-1"),
            )
            logger.info(
                "CloudWatch metrics enabled",
                extra={"namespace": self.namespace},
            )
        else:
            logger.debug(
                "CloudWatch metrics disabled - metrics will be logged only"
            )

    def put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str = "None",
        dimensions: Optional[dict] = None,
    ):
        """
        Send a metric to CloudWatch.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Unit of measurement (Count, Milliseconds, etc.)
            dimensions: Optional dimensions for the metric
        """
        dimensions = dimensions or {}

        logger.debug(
            f"Metric: {metric_name}",
            extra={
                "metric_name": metric_name,
                "value": value,
                "unit": unit,
                "dimensions": dimensions,
            },
        )

        if not (self.enabled and self.client):
            return

        metric_data = {
            "MetricName": metric_name,
            "Value": value,
            "Unit": unit,
            "Timestamp": datetime.now(timezone.utc),
        }

        if dimensions:
            metric_data["Dimensions"] = [
                {"Name": k, "Value": str(v)} for k, v in dimensions.items()
            ]

        try:
            self.client.put_metric_data(
                Namespace=self.namespace, MetricData=[metric_data]
            )
        except Exception as e:
            # Losing a data point must never fail the request it describes.
            logger.error(
                "Failed to send metric to CloudWatch",
                extra={"metric_name": metric_name, "error": str(e)},
            )

    def record_request(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        latency_ms: float,
        outcome: str = "exempt",
    ):
        """
        Record metrics for an HTTP request.

        Args:
            endpoint: The request endpoint
            method: HTTP method
            status_code: HTTP status code
            latency_ms: Request latency in milliseconds
            outcome: Pipeline outcome, or "exempt" for control routes
        """
        dimensions = {
            "Endpoint": endpoint,
            "Method": method,
            "StatusCode": str(status_code),
            "Outcome": outcome,
        }

        self.put_metric(
            "RequestLatency",
            latency_ms,
            unit="Milliseconds",
            dimensions=dimensions,
        )
        self.put_metric("RequestCount", 1, unit="Count", dimensions=dimensions)

        if 500 <= status_code < 600:
            self.put_metric(
                "ErrorCount", 1, unit="Count", dimensions=dimensions
            )

    def record_injected_fault(self, path: str):
        """Count a request rejected by the error injection stage."""
        self.put_metric(
            "InjectedFaultCount", 1, unit="Count", dimensions={"Path": path}
        )

    def record_allocation(self, nbytes: int, pool_bytes: int):
        """
        Record a memory allocation and the resulting pool size.

        Args:
            nbytes: Size of the new block
            pool_bytes: Bytes held by the pool after the allocation
        """
        self.put_metric("AllocatedBytes", nbytes, unit="Bytes")
        self.put_metric("AllocationPoolBytes", pool_bytes, unit="Bytes")

    def record_setting_change(self, setting: str, value):
        self.put_metric(
            "SettingValue",
            float(value),
            dimensions={"Setting": setting},
        )


# Global metrics collector instance
metrics_collector = MetricsCollector()
