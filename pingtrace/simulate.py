"""
Offline probing: no raw sockets required.

ScriptedProber:      replays canned outcomes per hop-limit (tests, tooling).
SimulatedTransport:  a synthetic path behind the EchoTransport interface,
                     so --demo exercises the real HopProber classification.
"""

from __future__ import annotations
from collections import deque
from ipaddress import ip_address
from typing import Optional, Sequence
import random
import threading
import time

from .errors import EchoTimeout, HopLimitExceeded
from .icmp import EchoSession, EchoTransport, check_hop_limit
from .models import IPAddress, ProbeOutcome, Timeout
from .prober import Prober


class ScriptedProber(Prober):
    """
    script: dict[hop_limit] -> sequence of outcomes returned one per call.
    An Exception instance in the script is raised instead of returned.
    With nothing left for a hop-limit, returns Timeout.
    """

    def __init__(self, script: Optional[dict] = None):
        self.script: dict[int, deque] = {}
        self.calls: list[tuple[int, int]] = []      # (hop_limit, timeout_ms)
        self._lock = threading.Lock()
        for hop_limit, outcomes in (script or {}).items():
            self.script[hop_limit] = deque(outcomes)

    def probe(self, destination: IPAddress, hop_limit: int,
              timeout_ms: int) -> ProbeOutcome:
        with self._lock:
            self.calls.append((hop_limit, timeout_ms))
            queued = self.script.get(hop_limit)
            item = queued.popleft() if queued else Timeout()
        if isinstance(item, Exception):
            raise item
        return item


# Documentation ranges only (RFC 5737)
DEMO_PATH = (
    "192.0.2.1", "198.51.100.1", None, "198.51.100.17",
    "203.0.113.5", "203.0.113.9",
)


class SimulatedSession(EchoSession):

    def __init__(self, transport: "SimulatedTransport", hop_limit: int,
                 timeout_ms: int):
        self.transport = transport
        self.hop_limit = hop_limit
        self.timeout_ms = timeout_ms

    def send(self, destination: IPAddress) -> float:
        t = self.transport
        path = t.path
        silent = self.hop_limit <= len(path) and path[self.hop_limit - 1] is None

        rtt = t.base_ms * self.hop_limit + t.rng.uniform(0.0, t.jitter_ms)
        if silent or t.rng.random() < t.loss or rtt > self.timeout_ms:
            t.sleep(self.timeout_ms / 1000.0)
            raise EchoTimeout(f"simulated loss at hop {self.hop_limit}")

        t.sleep(rtt / 1000.0)
        if self.hop_limit <= len(path):
            raise HopLimitExceeded(path[self.hop_limit - 1])
        return rtt


class SimulatedTransport(EchoTransport):
    """
    Routers answer "limit exceeded" up to len(path); anything deeper reaches
    the destination. A None entry is a hop that never answers.
    """

    def __init__(
        self,
        path: Sequence[Optional[str]] = DEMO_PATH,
        base_ms: float = 4.0,
        jitter_ms: float = 6.0,
        loss: float = 0.05,
        seed: Optional[int] = None,
        sleep=time.sleep,
    ):
        self.path: list[Optional[IPAddress]] = [
            ip_address(a) if a else None for a in path
        ]
        self.base_ms = base_ms
        self.jitter_ms = jitter_ms
        self.loss = loss
        self.rng = random.Random(seed)
        self.sleep = sleep

    def open(self, hop_limit: int, timeout_ms: int) -> SimulatedSession:
        check_hop_limit(hop_limit)
        return SimulatedSession(self, hop_limit, timeout_ms)
