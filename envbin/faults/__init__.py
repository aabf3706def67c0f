"""Live-reconfigurable fault injection: settings, CPU load, throttling."""

from envbin.faults.cpu import CpuLoadGenerator
from envbin.faults.errors import (
    FaultError,
    InjectedFault,
    ParseError,
    SinkNotFlushableError,
)
from envbin.faults.memory import AllocationPool
from envbin.faults.pipeline import RequestPipeline
from envbin.faults.settings import SettingsStore
from envbin.faults.throttle import ThrottledWriter

__all__ = [
    "AllocationPool",
    "CpuLoadGenerator",
    "FaultError",
    "InjectedFault",
    "ParseError",
    "RequestPipeline",
    "SettingsStore",
    "SinkNotFlushableError",
    "ThrottledWriter",
]
