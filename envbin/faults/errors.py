"""Exceptions raised by the fault injection core."""

from werkzeug.exceptions import InternalServerError


class FaultError(Exception):
    """Base class for fault injection errors."""


class ParseError(FaultError, ValueError):
    """A control value could not be parsed as its expected type."""

    def __init__(self, field, raw, reason):
        self.field = field
        self.raw = raw
        self.reason = reason
        super().__init__(f"{field}: parsing {raw!r}: {reason}")


class SinkNotFlushableError(FaultError, TypeError):
    """The output sink handed to a ThrottledWriter cannot be flushed."""


class InjectedFault(InternalServerError):
    """Server error deliberately returned by the error injection stage."""

    description = "Injected fault."
