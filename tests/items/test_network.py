"""Tests for the network readiness gate."""

import pytest

from outset.items.network import NetworkGate, NetworkStatus, NetworkTimeoutError


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestWaitForNetwork:
    """Tests for NetworkGate.wait_for_network."""

    def test_ready_immediately(self):
        """Returns at once when the first check succeeds."""
        clock = FakeClock()
        gate = NetworkGate(check=lambda: True, sleep=clock.sleep, clock=clock)

        assert gate.wait_for_network(180) == NetworkStatus.READY
        assert clock.sleeps == []

    def test_ready_after_a_few_polls(self):
        """Stops polling as soon as the network comes up."""
        clock = FakeClock()
        results = iter([False, False, True])
        gate = NetworkGate(check=lambda: next(results), sleep=clock.sleep, clock=clock)

        assert gate.wait_for_network(180) == NetworkStatus.READY
        assert clock.sleeps == [1.0, 1.0]

    def test_times_out(self):
        """Gives up once the deadline passes, polling once per second."""
        clock = FakeClock()
        checks = []

        def check():
            checks.append(clock.now)
            return False

        gate = NetworkGate(check=check, sleep=clock.sleep, clock=clock)

        assert gate.wait_for_network(5) == NetworkStatus.TIMED_OUT
        assert clock.now == 5.0
        assert len(checks) == 6
        assert all(s == 1.0 for s in clock.sleeps)

    def test_require_network_raises_on_timeout(self):
        clock = FakeClock()
        gate = NetworkGate(check=lambda: False, sleep=clock.sleep, clock=clock)

        with pytest.raises(NetworkTimeoutError):
            gate.require_network(3)

    def test_require_network_returns_when_ready(self):
        clock = FakeClock()
        gate = NetworkGate(check=lambda: True, sleep=clock.sleep, clock=clock)

        gate.require_network(3)
