"""
Shared, mutable fault settings.

Every field lives in its own cell so reads and writes are individually
well defined. There is no cross-field snapshot guarantee: a request may
observe a new bandwidth while still sleeping on an old delay.
"""

import logging
import math
import multiprocessing
import sys
import threading

from envbin.faults.errors import ParseError

logger = logging.getLogger(__name__)

UNLIMITED_BANDWIDTH = sys.maxsize

_TRUE_VALUES = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSE_VALUES = frozenset(("0", "f", "F", "FALSE", "false", "False"))


def parse_non_negative_int(field, raw, minimum=0, maximum=None):
    """Parse a base-10 integer within [minimum, maximum]."""
    text = (raw or "").strip()
    if not text.isdigit() or not text.isascii():
        raise ParseError(field, raw, "invalid syntax")

    value = int(text, 10)
    if value < minimum or (maximum is not None and value > maximum):
        raise ParseError(field, raw, "value out of range")
    return value


def parse_float(field, raw):
    """Parse a finite float. Range is not checked."""
    try:
        value = float((raw or "").strip())
    except ValueError:
        raise ParseError(field, raw, "invalid syntax") from None

    if not math.isfinite(value):
        raise ParseError(field, raw, "value out of range")
    return value


def parse_bool(field, raw):
    text = (raw or "").strip()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ParseError(field, raw, "invalid syntax")


class AtomicCell:
    """A single value guarded by a lock."""

    def __init__(self, value):
        self._value = value
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            return self._value

    def set(self, value):
        with self._lock:
            self._value = value


class SharedFloatCell:
    """
    A float visible to child processes.

    Backed by a ``multiprocessing.Value`` so CPU worker processes read the
    same value control requests write.
    """

    def __init__(self, value, context=None):
        context = context or multiprocessing.get_context()
        self.raw = context.Value("d", float(value))

    def get(self):
        with self.raw.get_lock():
            return self.raw.value

    def set(self, value):
        with self.raw.get_lock():
            self.raw.value = float(value)


class SettingsStore:
    """
    Runtime fault settings shared by control requests, the request
    pipeline and the CPU load generator.

    Fields:
        delay: seconds slept before a faulted request is handled
        bandwidth: response byte rate ceiling in bytes/second
        error_rate: probability a faulted request is answered with a 500
        cpu_target: logical cores worth of busy time to burn
        healthy: value reported by the health probe
        live: value reported by the liveness probe
    """

    PARSERS = {
        "delay": parse_non_negative_int,
        "bandwidth": parse_non_negative_int,
        "error_rate": parse_float,
        "cpu_target": parse_float,
        "healthy": parse_bool,
        "live": parse_bool,
    }

    def __init__(
        self,
        delay=0,
        bandwidth=UNLIMITED_BANDWIDTH,
        error_rate=0.0,
        cpu_target=0.0,
        healthy=True,
        live=True,
        context=None,
    ):
        self._cells = {
            "delay": AtomicCell(int(delay)),
            "bandwidth": AtomicCell(int(bandwidth)),
            "error_rate": AtomicCell(float(error_rate)),
            "cpu_target": SharedFloatCell(cpu_target, context=context),
            "healthy": AtomicCell(bool(healthy)),
            "live": AtomicCell(bool(live)),
        }

    @classmethod
    def from_config(cls, config):
        """Build a store from the INITIAL_* keys of a Flask config."""
        return cls(
            delay=config.get("INITIAL_DELAY", 0),
            bandwidth=config.get("INITIAL_BANDWIDTH", UNLIMITED_BANDWIDTH),
            error_rate=config.get("INITIAL_ERROR_RATE", 0.0),
            cpu_target=config.get("INITIAL_CPU_TARGET", 0.0),
        )

    def _cell(self, name):
        try:
            return self._cells[name]
        except KeyError:
            raise KeyError(f"unknown setting: {name}") from None

    def get(self, name):
        return self._cell(name).get()

    def set(self, name, raw):
        """
        Parse and store a new value for a field.

        :param name: Field name, one of PARSERS
        :param raw: Unparsed value as received from a control request
        :return: The parsed value now stored
        :raises ParseError: if raw is malformed; the store is unchanged
        """
        cell = self._cell(name)
        value = self.PARSERS[name](name, raw)
        cell.set(value)

        logger.info(
            "Setting changed", extra={"setting": name, "value": value}
        )

        return value

    def snapshot(self):
        """Read every field. Values may come from different moments."""
        return {name: cell.get() for name, cell in self._cells.items()}

    @property
    def cpu_target_cell(self):
        return self._cells["cpu_target"]

    @property
    def delay(self):
        return self.get("delay")

    @property
    def bandwidth(self):
        return self.get("bandwidth")

    @property
    def error_rate(self):
        return self.get("error_rate")

    @property
    def cpu_target(self):
        return self.get("cpu_target")

    @property
    def healthy(self):
        return self.get("healthy")

    @property
    def live(self):
        return self.get("live")
