"""Bandwidth throttled writes."""

import logging
import time
from collections import deque

from envbin.faults.errors import SinkNotFlushableError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 0.1


class RateLimiter:
    """
    Leaky bucket on cumulative bytes per wall-clock second.

    Callers ask for ``want`` bytes and get back how many they may write
    now, after being put to sleep long enough to keep the long-run rate at
    or below the limit. A single grant never exceeds one window's worth of
    bytes, so a big write is paced in small steps.

    Rates below 1 byte/second disable limiting.
    """

    def __init__(self, rate, window=DEFAULT_WINDOW, clock=time.monotonic,
                 sleep=time.sleep):
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self.set_limit(rate)

    @property
    def rate(self):
        return self._rate

    def set_limit(self, rate):
        """Change the rate. Accounting restarts from now."""
        self._rate = rate
        self._paid_until = self._clock()

    def acquire(self, want):
        rate = self._rate
        if want < 1 or rate < 1:
            return want

        grant = min(want, max(1, int(rate * self.window)))

        now = self._clock()
        # Idle time earns at most one window of credit.
        self._paid_until = max(self._paid_until, now - self.window)
        self._paid_until += grant / rate

        wait = self._paid_until - now
        if wait > 0:
            self._sleep(wait)

        return grant


class ThrottledWriter:
    """
    Rate limited writer over a flushable sink.

    The limit is looked up before every write, so a changed bandwidth
    setting applies from the next write on without recreating the writer.
    A write that is already in progress keeps the limit it started with.
    The sink is flushed after every write so paced output reaches the
    client as it is produced.
    """

    def __init__(self, sink, limit_source, limiter=None):
        """
        :param sink: Object with write(bytes) and flush()
        :param limit_source: Callable returning the current limit
        :param limiter: RateLimiter to use, built from the current limit
            when omitted
        :raises SinkNotFlushableError: if sink has no flush()
        """
        flush = getattr(sink, "flush", None)
        if not callable(flush):
            raise SinkNotFlushableError(
                f"{type(sink).__name__} does not support flush()"
            )

        self._sink = sink
        self._flush = flush
        self._limit_source = limit_source
        self._applied = limit_source()
        self._limiter = limiter or RateLimiter(self._applied)
        self._limiter.set_limit(self._applied)

    @property
    def limit(self):
        return self._applied

    def write(self, data):
        limit = self._limit_source()
        if limit != self._applied:
            self._limiter.set_limit(limit)
            self._applied = limit
            logger.info(
                "Adjusted writer bandwidth", extra={"bandwidth": limit}
            )

        view = memoryview(data)
        written = 0
        while written < len(view):
            grant = self._limiter.acquire(len(view) - written)
            self._sink.write(bytes(view[written:written + grant]))
            written += grant

        self._flush()

        return written


class ResponseSink:
    """
    In-memory sink between a ThrottledWriter and a WSGI response iterable.

    Written bytes are held until flushed; drain() hands flushed chunks to
    the server.
    """

    def __init__(self):
        self._pending = []
        self._ready = deque()

    def write(self, data):
        self._pending.append(data)

    def flush(self):
        if self._pending:
            self._ready.append(b"".join(self._pending))
            self._pending = []

    def drain(self):
        while self._ready:
            yield self._ready.popleft()
