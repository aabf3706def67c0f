from flask import current_app

from envbin.faults.cpu import CpuLoadGenerator
from envbin.faults.memory import AllocationPool
from envbin.faults.pipeline import RequestPipeline
from envbin.faults.settings import SettingsStore


class FaultState:
    """Process lifetime fault injection state owned by one app."""

    def __init__(self, settings, pool, cpu):
        self.settings = settings
        self.pool = pool
        self.cpu = cpu


class FaultInjection:
    """
    Flask extension wiring the fault injection core into an app.

    Creates the settings store and allocation pool, wraps the WSGI app in
    the request pipeline and, unless CPU_LOAD_ENABLED is false, starts the
    CPU load workers.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        settings = SettingsStore.from_config(app.config)
        cpu = CpuLoadGenerator(
            settings.cpu_target_cell,
            num_units=app.config.get("CPU_LOAD_UNITS"),
            period=app.config.get("CPU_PERIOD_SECONDS", 1.0),
        )
        state = FaultState(settings, AllocationPool(), cpu)
        app.extensions["faults"] = state

        app.wsgi_app = RequestPipeline(app.wsgi_app, settings)

        if app.config.get("CPU_LOAD_ENABLED", True):
            cpu.start()

        return state

    @property
    def state(self):
        return current_app.extensions["faults"]

    @property
    def settings(self):
        return self.state.settings

    @property
    def pool(self):
        return self.state.pool


faults = FaultInjection()
