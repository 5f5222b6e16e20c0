# tests/conftest.py
from ipaddress import ip_address

import pytest

from pingtrace.render import Renderer
from pingtrace.scheduler import SchedulerConfig

TARGET = ip_address("203.0.113.50")


class RecordingRenderer(Renderer):
    """Keeps every snapshot it is handed."""

    def __init__(self):
        self.rounds = []
        self.finals = []

    def round_complete(self, snapshot):
        self.rounds.append(snapshot)

    def final(self, snapshot):
        self.finals.append(snapshot)


class FakeReverseResolver:
    def __init__(self, names=None):
        self.names = names or {}
        self.calls = []

    def lookup(self, address):
        self.calls.append(address)
        return self.names.get(str(address))


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def make_config():
    def _make(**overrides):
        defaults = dict(count=1, interval_ms=0, max_ttl=3,
                        resolve_names=False, timeout_ms=100)
        defaults.update(overrides)
        return SchedulerConfig(**defaults)
    return _make
