"""Per-request logging of the faults applied to each response."""

import logging
import time

from flask import current_app, g, request

from envbin.observability.metrics import metrics_collector

logger = logging.getLogger(__name__)

EXEMPT = "exempt"


class ObservabilityMiddleware:
    """
    Log and count every request that reaches Flask, tagged with the
    pipeline outcome and the fault settings it was served under.

    Rejected requests never get this far; the error injection stage logs
    those itself.
    """

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.before_request(self.before_request)
        app.after_request(self.after_request)

    @staticmethod
    def before_request():
        from envbin.faults.pipeline import OUTCOME_KEY

        g.start_time = time.time()
        g.request_id = request.headers.get("X-Request-ID", "unknown")

        outcome = request.environ.get(OUTCOME_KEY)
        g.outcome = outcome.value if outcome is not None else EXEMPT

        if g.outcome != EXEMPT:
            settings = current_app.extensions["faults"].settings
            # Delay has already been slept; bandwidth is re-read per write.
            g.faults = {
                "delay": settings.delay,
                "bandwidth": settings.bandwidth,
                "error_rate": settings.error_rate,
            }

    @staticmethod
    def after_request(response):
        """
        Log the request with its faults and echo them as headers.

        Args:
            response: Flask response object

        Returns:
            Flask response object
        """
        if not hasattr(g, "start_time"):
            return response

        latency_ms = (time.time() - g.start_time) * 1000
        faults = getattr(g, "faults", {})

        logger.info(
            "Request completed",
            extra={
                "request_id": g.request_id,
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "outcome": g.outcome,
                "handler_latency_ms": round(latency_ms, 2),
                **{f"fault_{k}": v for k, v in faults.items()},
            },
        )

        metrics_collector.record_request(
            endpoint=request.endpoint or request.path,
            method=request.method,
            status_code=response.status_code,
            latency_ms=latency_ms,
            outcome=g.outcome,
        )

        response.headers["X-Request-ID"] = g.request_id
        if faults:
            response.headers["X-Envbin-Delay"] = str(faults["delay"])
            response.headers["X-Envbin-Bandwidth"] = str(faults["bandwidth"])

        return response
