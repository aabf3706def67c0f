"""Tests for the CPU duty cycle generator."""

import pytest

from envbin.faults.cpu import CpuLoadGenerator, burn, duty_cycle


class Target:
    """Cell returning a scripted sequence of targets, then the last one."""

    def __init__(self, *values):
        self.values = list(values)
        self.reads = 0

    def get(self):
        self.reads += 1
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class FakeProcess:
    def __init__(self, target, args, name, daemon):
        self.target = target
        self.args = args
        self.name = name
        self.daemon = daemon
        self.started = False
        self.terminated = False

    def start(self):
        self.started = True

    def terminate(self):
        self.terminated = True

    def join(self):
        pass


class FakeContext:
    def __init__(self):
        self.processes = []

    def Process(self, **kwargs):
        process = FakeProcess(**kwargs)
        self.processes.append(process)
        return process


class TestDutyCycle:
    def test_fraction_of_each_unit(self):
        assert duty_cycle(2.0, 4) == 0.5
        assert duty_cycle(2.5, 4) == pytest.approx(0.625)

    def test_target_above_unit_count_is_clamped(self):
        assert duty_cycle(64.0, 4) == 1.0

    def test_negative_target_is_idle(self):
        assert duty_cycle(-1.0, 4) == 0.0

    def test_no_units(self):
        assert duty_cycle(1.0, 0) == 0.0


class TestBurn:
    def test_half_duty_cycle_sleeps_half_of_each_period(self, fake_clock):
        fake_clock.tick = 0.001

        burn(Target(1.0), 2, period=1.0, clock=fake_clock,
             sleep=fake_clock.sleep, cycles=3)

        assert len(fake_clock.sleeps) == 3
        for slept in fake_clock.sleeps:
            assert slept == pytest.approx(0.5, abs=0.01)

    def test_zero_target_idles_whole_period(self, fake_clock):
        fake_clock.tick = 0.001

        burn(Target(0.0), 4, period=1.0, clock=fake_clock,
             sleep=fake_clock.sleep, cycles=2)

        for slept in fake_clock.sleeps:
            assert slept == pytest.approx(1.0, abs=0.01)

    def test_full_duty_cycle_never_sleeps(self, fake_clock):
        fake_clock.tick = 0.001

        burn(Target(8.0), 2, period=1.0, clock=fake_clock,
             sleep=fake_clock.sleep, cycles=2)

        assert fake_clock.sleeps == []

    def test_high_phase_ends_at_period_boundary(self, fake_clock):
        fake_clock.tick = 0.001
        start = fake_clock.now

        burn(Target(8.0), 2, period=1.0, clock=fake_clock,
             sleep=fake_clock.sleep, cycles=3)

        assert fake_clock.now - start == pytest.approx(3.0, abs=0.02)

    def test_target_reread_every_period(self, fake_clock):
        fake_clock.tick = 0.001
        target = Target(0.0, 2.0)

        burn(target, 2, period=1.0, clock=fake_clock,
             sleep=fake_clock.sleep, cycles=2)

        assert target.reads == 2
        # Idle first period, fully busy second period.
        assert len(fake_clock.sleeps) == 1
        assert fake_clock.sleeps[0] == pytest.approx(1.0, abs=0.01)


class TestCpuLoadGenerator:
    def test_one_daemon_worker_per_unit(self):
        context = FakeContext()
        target = Target(0.0)
        generator = CpuLoadGenerator(target, num_units=3, period=0.5,
                                     context=context)

        workers = generator.start()

        assert len(workers) == 3
        assert generator.running
        for process in context.processes:
            assert process.started
            assert process.daemon
            assert process.target is burn
            assert process.args == (target, 3, 0.5)

    def test_start_is_idempotent(self):
        context = FakeContext()
        generator = CpuLoadGenerator(Target(0.0), num_units=2,
                                     context=context)

        generator.start()
        generator.start()

        assert len(context.processes) == 2

    def test_stop_terminates_workers(self):
        context = FakeContext()
        generator = CpuLoadGenerator(Target(0.0), num_units=2,
                                     context=context)
        generator.start()

        generator.stop()

        assert all(p.terminated for p in context.processes)
        assert not generator.running

    def test_defaults_to_cpu_count(self, monkeypatch):
        monkeypatch.setattr("envbin.faults.cpu.os.cpu_count", lambda: 6)

        generator = CpuLoadGenerator(Target(0.0), context=FakeContext())

        assert generator.num_units == 6
