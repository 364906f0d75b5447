import pytest

import cache_table.core.item as item_mod
import cache_table.core.table as table_mod
from cache_table.core.table import CacheTable


class ManualScheduler:
    """Stand-in for ExpirationScheduler that records requests instead of using threads."""

    def __init__(self, sweep, name):
        self.sweep = sweep
        self.name = name
        self.triggers = 0
        self.armed = []
        self.cancels = 0
        self.closed = False

    def trigger(self):
        self.triggers += 1

    def arm(self, delay):
        self.armed.append(delay)

    def cancel(self):
        self.cancels += 1

    def close(self):
        self.closed = True

    def run_pending(self):
        # Run the sweep synchronously, as the worker would.
        self.sweep()


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    c = FakeClock()
    monkeypatch.setattr(item_mod.time, "time", c)
    monkeypatch.setattr(table_mod.time, "time", c)
    return c


@pytest.fixture
def schedulers():
    return []


@pytest.fixture
def table(schedulers):
    def factory(sweep, name):
        s = ManualScheduler(sweep, name)
        schedulers.append(s)
        return s

    t = CacheTable("test", scheduler_factory=factory, metrics_enabled=False)
    yield t
    t.close()


@pytest.fixture
def scheduler(table, schedulers):
    return schedulers[0]
