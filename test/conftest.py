import pytest

from envbin.app import create_app


class FakeClock:
    """Monotonic clock that only moves when told to or slept on."""

    def __init__(self, start=1000.0, tick=0.0):
        self.now = start
        self.tick = tick
        self.sleeps = []

    def __call__(self):
        self.now += self.tick
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    @property
    def slept(self):
        return sum(self.sleeps)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def app():
    """
    Set up a fresh app per test, fault settings are process state.

    :return: Flask app
    """
    params = {
        "DEBUG": False,
        "TESTING": True,
        "SERVER_NAME": "localhost",
        "CPU_LOAD_ENABLED": False,
        "START_TIME": "2026-10-19 12:00:00",
    }

    _app = create_app(settings_override=params)

    ctx = _app.app_context()
    ctx.push()

    yield _app

    ctx.pop()


@pytest.fixture
def client(app):
    yield app.test_client()
