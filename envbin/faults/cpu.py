"""
CPU load generator.

One worker per logical CPU alternates between busy-spinning and sleeping
inside a fixed period so that, summed over all workers, roughly
``cpu_target`` cores are kept busy.

Measured utilisation over/undershoots the target by about 10%. Part of
that is the sampling of tools such as top, part is scheduler granularity.
Workers only stop when the process exits.
"""

import logging
import multiprocessing
import os
import time

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 1.0


def duty_cycle(target, num_units):
    """
    Fraction of each period a single worker should spend busy.

    Targets above the number of units cannot be realised and are clamped,
    as are negative targets.
    """
    if num_units < 1:
        return 0.0
    return min(max(target, 0.0), num_units) / num_units


def burn(target, num_units, period=DEFAULT_PERIOD, clock=time.monotonic,
         sleep=time.sleep, cycles=None):
    """
    Run the duty cycle loop.

    ``target`` is re-read at the start of every period, so a change takes
    effect on the next period rather than mid-period.

    :param target: Cell exposing get() for the aggregate CPU target
    :param num_units: Number of workers sharing the target
    :param period: Period length in seconds
    :param cycles: Stop after this many periods (None runs forever)
    """
    boundary = clock() + period
    completed = 0

    while cycles is None or completed < cycles:
        high_end = clock() + duty_cycle(target.get(), num_units) * period

        # High: spin without yielding, bail out at the period boundary.
        while True:
            now = clock()
            if now >= high_end or now >= boundary:
                break

        # Low: idle until the boundary.
        remaining = boundary - clock()
        if remaining > 0:
            sleep(remaining)

        boundary += period
        now = clock()
        if boundary <= now:
            # Missed ticks are dropped rather than replayed back to back.
            boundary = now + period

        completed += 1


class CpuLoadGenerator:
    """Owns the worker processes that burn CPU."""

    def __init__(self, target, num_units=None, period=DEFAULT_PERIOD,
                 context=None):
        """
        :param target: Shared cell holding the CPU target, must be
            picklable into a child process (see SharedFloatCell)
        :param num_units: Worker count, defaults to os.cpu_count()
        :param period: Duty cycle period in seconds
        :param context: multiprocessing context used to start workers
        """
        self.target = target
        self.num_units = num_units or os.cpu_count() or 1
        self.period = period
        self.context = context or multiprocessing.get_context()
        self.workers = []

    @property
    def running(self):
        return bool(self.workers)

    def start(self):
        """Start one daemon worker per logical unit. Idempotent."""
        if self.workers:
            return self.workers

        for index in range(self.num_units):
            worker = self.context.Process(
                target=burn,
                args=(self.target, self.num_units, self.period),
                name=f"cpu-load-{index}",
                daemon=True,
            )
            worker.start()
            self.workers.append(worker)

        logger.info(
            "CPU load workers started",
            extra={"workers": self.num_units, "period": self.period},
        )

        return self.workers

    def stop(self):
        """Terminate the workers. Only used outside of normal serving."""
        for worker in self.workers:
            worker.terminate()
        for worker in self.workers:
            worker.join()
        self.workers = []
