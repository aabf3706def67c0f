"""Tests for metrics collection and request observability."""

from unittest.mock import MagicMock

from flask import url_for

from envbin.observability.metrics import MetricsCollector
from lib.test import ViewTestMixin


def collector_with_client():
    collector = MetricsCollector(enabled=False)
    collector.enabled = True
    collector.client = MagicMock()
    return collector


def sent_metric_names(collector):
    return [
        call.kwargs["MetricData"][0]["MetricName"]
        for call in collector.client.put_metric_data.call_args_list
    ]


class TestMetricsCollector:
    def test_disabled_collector_sends_nothing(self):
        collector = MetricsCollector(enabled=False)

        collector.record_request("page.status", "GET", 200, 12.5)

        assert collector.client is None

    def test_server_errors_are_counted(self):
        collector = collector_with_client()

        collector.record_request("page.status", "GET", 500, 3.0)

        assert sent_metric_names(collector) == [
            "RequestLatency",
            "RequestCount",
            "ErrorCount",
        ]

    def test_request_outcome_dimension(self):
        collector = collector_with_client()

        collector.record_request("page.status", "GET", 200, 1.0,
                                 outcome="forwarded")

        data = collector.client.put_metric_data.call_args.kwargs["MetricData"]
        assert {"Name": "Outcome", "Value": "forwarded"} in data[0]["Dimensions"]

    def test_injected_fault_dimensions(self):
        collector = collector_with_client()

        collector.record_injected_fault("/orders")

        data = collector.client.put_metric_data.call_args.kwargs["MetricData"]
        assert data[0]["MetricName"] == "InjectedFaultCount"
        assert data[0]["Dimensions"] == [{"Name": "Path", "Value": "/orders"}]

    def test_allocation_metrics(self):
        collector = collector_with_client()

        collector.record_allocation(1024, 4096)

        assert sent_metric_names(collector) == [
            "AllocatedBytes",
            "AllocationPoolBytes",
        ]

    def test_send_failure_is_logged_not_raised(self, caplog):
        collector = collector_with_client()
        collector.client.put_metric_data.side_effect = RuntimeError("down")

        collector.record_setting_change("delay", 5)

        assert any(
            "Failed to send metric" in rec.message for rec in caplog.records
        )


class TestObservabilityMiddleware(ViewTestMixin):
    def test_request_id_echoed(self):
        response = self.client.get(
            url_for("up.healthz"), headers={"X-Request-ID": "abc-123"}
        )

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_completion_logged(self, caplog):
        caplog.set_level("INFO")

        self.client.get(url_for("up.live"))

        assert any(
            rec.message == "Request completed" and rec.path == "/live"
            for rec in caplog.records
        )

    def test_exempt_request_has_no_fault_headers(self, caplog):
        caplog.set_level("INFO")

        response = self.client.get(url_for("up.healthz"))

        assert "X-Envbin-Delay" not in response.headers
        record = next(
            rec for rec in caplog.records if rec.message == "Request completed"
        )
        assert record.outcome == "exempt"

    def test_faulted_request_tagged_with_settings(self, monkeypatch, caplog):
        monkeypatch.setattr("envbin.page.views.host_info", lambda: {})
        monkeypatch.setattr("envbin.faults.pipeline.time.sleep",
                            lambda seconds: None)
        self.settings.set("delay", "2")
        self.settings.set("bandwidth", "65536")
        caplog.set_level("INFO")

        response = self.client.get("/")

        assert response.status_code == 200
        assert response.headers["X-Envbin-Delay"] == "2"
        assert response.headers["X-Envbin-Bandwidth"] == "65536"
        record = next(
            rec for rec in caplog.records if rec.message == "Request completed"
        )
        assert record.outcome == "forwarded"
        assert record.fault_delay == 2
        assert record.fault_error_rate == 0.0

    def test_request_metric_carries_outcome(self, monkeypatch):
        recorded = []
        monkeypatch.setattr(
            "envbin.observability.middleware.metrics_collector.record_request",
            lambda **kwargs: recorded.append(kwargs),
        )

        self.client.get(url_for("up.live"))

        assert recorded[0]["outcome"] == "exempt"
        assert recorded[0]["status_code"] == 200
