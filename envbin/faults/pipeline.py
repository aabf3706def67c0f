"""
Fault injection request pipeline.

Each stage is a WSGI middleware. RequestPipeline wraps them around the
real application in the order given by ``stages``; with DEFAULT_STAGES a
request goes through error injection, then latency, then bandwidth
throttling before it reaches the application. A rejected request is
never delayed or throttled.
"""

import enum
import logging
import random
import threading
import time

from envbin.faults.errors import InjectedFault
from envbin.faults.throttle import ResponseSink, ThrottledWriter
from envbin.observability.metrics import metrics_collector

logger = logging.getLogger(__name__)

OUTCOME_KEY = "envbin.outcome"
EXEMPT_PREFIXES = ("/api", "/healthz", "/live")


class Outcome(enum.Enum):
    FORWARDED = "forwarded"
    REJECTED = "rejected"


class ErrorInjectionStage:
    """Answers a share of requests with a 500 instead of forwarding them."""

    def __init__(self, app, settings, rng=None):
        self.app = app
        self.settings = settings
        self.rng = rng

    def __call__(self, environ, start_response):
        rng = self.rng or random.random

        # rng() is in [0, 1): a rate of 0 never rejects, 1 always does.
        if rng() < self.settings.error_rate:
            environ[OUTCOME_KEY] = Outcome.REJECTED
            path = environ.get("PATH_INFO", "")

            logger.info("Injected fault", extra={"path": path})
            metrics_collector.record_injected_fault(path)

            return InjectedFault()(environ, start_response)

        environ[OUTCOME_KEY] = Outcome.FORWARDED
        return self.app(environ, start_response)


class LatencyInjectionStage:
    """Delays the whole response by the configured number of seconds."""

    def __init__(self, app, settings, sleep=None):
        self.app = app
        self.settings = settings
        self.sleep = sleep

    def __call__(self, environ, start_response):
        delay = self.settings.delay
        if delay > 0:
            # time.sleep() overflows past TIMEOUT_MAX.
            (self.sleep or time.sleep)(min(delay, threading.TIMEOUT_MAX))
        return self.app(environ, start_response)


class BandwidthThrottleStage:
    """Paces the response body through a ThrottledWriter."""

    def __init__(self, app, settings, writer_factory=ThrottledWriter):
        self.app = app
        self.settings = settings
        self.writer_factory = writer_factory

    def _current_limit(self):
        return self.settings.bandwidth

    def __call__(self, environ, start_response):
        sink = ResponseSink()
        writer = self.writer_factory(sink, self._current_limit)
        return self._stream(self.app(environ, start_response), writer, sink)

    @staticmethod
    def _stream(app_iter, writer, sink):
        try:
            for chunk in app_iter:
                if chunk:
                    writer.write(chunk)
                    yield from sink.drain()
        finally:
            close = getattr(app_iter, "close", None)
            if close is not None:
                close()


DEFAULT_STAGES = (
    ErrorInjectionStage,
    LatencyInjectionStage,
    BandwidthThrottleStage,
)


class RequestPipeline:
    """
    WSGI middleware applying the fault stages to every request outside
    the control and probe paths.
    """

    def __init__(self, app, settings, stages=DEFAULT_STAGES,
                 exempt_prefixes=EXEMPT_PREFIXES):
        """
        :param app: Terminal WSGI application
        :param settings: SettingsStore read by the stages
        :param stages: Stage factories, outermost first. Each is called as
            stage(next_app, settings).
        :param exempt_prefixes: Paths passed straight to app
        """
        self.app = app
        self.settings = settings
        self.stages = tuple(stages)
        self.exempt_prefixes = tuple(exempt_prefixes)

        handler = app
        for stage in reversed(self.stages):
            handler = stage(handler, settings)
        self.handler = handler

    def is_exempt(self, path):
        for prefix in self.exempt_prefixes:
            if path == prefix or path.startswith(prefix + "/"):
                return True
        return False

    def __call__(self, environ, start_response):
        if self.is_exempt(environ.get("PATH_INFO", "")):
            return self.app(environ, start_response)
        return self.handler(environ, start_response)
