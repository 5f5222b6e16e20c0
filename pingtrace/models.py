"""
Continuous Path Probe: Core Data Models

One record per hop-limit, one outcome per probe, one horizon per run.

The question at every hop, every round:
  Did it answer? → Who answered? → How long did it take?
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from ipaddress import IPv4Address, IPv6Address
from math import sqrt
from typing import ClassVar, Iterable, Optional, Union


IPAddress = Union[IPv4Address, IPv6Address]


# ============================================================
# Probe Outcomes: the four things one probe can tell us
# ============================================================

class OutcomeKind(Enum):
    REPLY = "reply"                     # destination answered
    LIMIT_EXCEEDED = "limit-exceeded"   # intermediate hop rejected the probe
    UNREACHABLE = "unreachable"         # host/net unreachable, no timing
    TIMEOUT = "timeout"                 # silence, or the probe never left


@dataclass(frozen=True)
class Reply:
    address: IPAddress
    rtt: float
    kind: ClassVar[OutcomeKind] = OutcomeKind.REPLY


@dataclass(frozen=True)
class LimitExceeded:
    address: IPAddress
    rtt: float                          # wall-clock since send, not a true RTT
    kind: ClassVar[OutcomeKind] = OutcomeKind.LIMIT_EXCEEDED


@dataclass(frozen=True)
class Unreachable:
    address: IPAddress
    kind: ClassVar[OutcomeKind] = OutcomeKind.UNREACHABLE


@dataclass(frozen=True)
class Timeout:
    kind: ClassVar[OutcomeKind] = OutcomeKind.TIMEOUT


ProbeOutcome = Union[Reply, LimitExceeded, Unreachable, Timeout]


# ============================================================
# Hop Record: running statistics for one hop-limit
# ============================================================

@dataclass
class HopRecord:
    """
    Everything we know about a single hop-limit across all rounds.
    Identity is the hop-limit; everything else accumulates.
    """
    hop_limit: int
    address: Optional[IPAddress] = None     # last responder at this hop
    hostname: Optional[str] = None          # reverse lookup, at most once

    sent: int = 0
    received: int = 0

    last_rtt: Optional[float] = None
    min_rtt: Optional[float] = None
    max_rtt: Optional[float] = None
    sum_rtt: float = 0.0
    sum_rtt_sq: float = 0.0

    def record_response(self, address: IPAddress, rtt: float) -> None:
        self.address = address
        self.sent += 1
        self.received += 1
        self.last_rtt = rtt
        self.sum_rtt += rtt
        self.sum_rtt_sq += rtt * rtt
        self.min_rtt = rtt if self.min_rtt is None else min(self.min_rtt, rtt)
        self.max_rtt = rtt if self.max_rtt is None else max(self.max_rtt, rtt)

    def record_loss(self, address: Optional[IPAddress] = None) -> None:
        if address is not None:
            self.address = address
        self.sent += 1

    @property
    def loss_percent(self) -> float:
        if self.sent == 0:
            return 0.0
        return 100.0 * (self.sent - self.received) / self.sent

    @property
    def avg_rtt(self) -> float:
        if self.received == 0:
            return 0.0
        return self.sum_rtt / self.received

    @property
    def stddev_rtt(self) -> float:
        if self.received < 2:
            return 0.0
        mean = self.avg_rtt
        # float rounding can leave a tiny negative variance
        variance = self.sum_rtt_sq / self.received - mean * mean
        return sqrt(max(0.0, variance))

    def to_dict(self) -> dict:
        return {
            "hop": self.hop_limit,
            "address": str(self.address) if self.address else None,
            "hostname": self.hostname,
            "sent": self.sent,
            "received": self.received,
            "loss_percent": round(self.loss_percent, 1),
            "last_ms": self.last_rtt,
            "avg_ms": self.avg_rtt if self.received else None,
            "best_ms": self.min_rtt,
            "worst_ms": self.max_rtt,
            "stddev_ms": self.stddev_rtt if self.received > 1 else None,
        }


# ============================================================
# Target Horizon: where the destination first answered
# ============================================================

class TargetHorizon:
    """Write-once hop-limit. Once set, it never moves."""

    def __init__(self) -> None:
        self._value: Optional[int] = None

    def get(self) -> Optional[int]:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def offer(self, hop_limit: int) -> bool:
        """Set the horizon if still unset. Returns True if this call set it."""
        if self._value is not None:
            return False
        self._value = hop_limit
        return True


# ============================================================
# Snapshot: what the renderers get to look at
# ============================================================

@dataclass(frozen=True)
class TableSnapshot:
    hops: tuple[HopRecord, ...]
    target_horizon: Optional[int]
    horizon: int                        # hop-limits probed in the last round
    cycle: int = 0

    @property
    def display_count(self) -> int:
        """Rows shown by the live view."""
        return self.target_horizon or self.horizon

    @property
    def final_count(self) -> int:
        """Rows in the final report."""
        if self.target_horizon:
            return self.target_horizon
        for hop in reversed(self.hops):
            if hop.sent > 0:
                return hop.hop_limit
        return 1

    def rows(self, count: int) -> tuple[HopRecord, ...]:
        return self.hops[:count]


# ============================================================
# Hop Table: the shared statistics model
# ============================================================

@dataclass
class HopTable:
    """
    Ordered per-hop records, index = hop-limit - 1.
    Not thread-safe on its own; the scheduler owns the lock.
    """
    max_hop: int
    hops: list[HopRecord] = field(init=False)
    target_horizon: TargetHorizon = field(default_factory=TargetHorizon)

    def __post_init__(self):
        self.hops = [HopRecord(hop_limit=n) for n in range(1, self.max_hop + 1)]

    def __getitem__(self, hop_limit: int) -> HopRecord:
        return self.hops[hop_limit - 1]

    def merge(
        self, results: Iterable[tuple[int, ProbeOutcome]],
    ) -> list[tuple[int, IPAddress]]:
        """
        Fold one round of outcomes into the table, in the order given.
        Callers pass results sorted by hop-limit so the lowest replying
        hop-limit claims the horizon.

        Returns (hop_limit, address) for every outcome that named a responder.
        """
        responders: list[tuple[int, IPAddress]] = []
        for hop_limit, outcome in results:
            record = self[hop_limit]
            if isinstance(outcome, Reply):
                record.record_response(outcome.address, outcome.rtt)
                self.target_horizon.offer(hop_limit)
                responders.append((hop_limit, outcome.address))
            elif isinstance(outcome, LimitExceeded):
                record.record_response(outcome.address, outcome.rtt)
                responders.append((hop_limit, outcome.address))
            elif isinstance(outcome, Unreachable):
                record.record_loss(outcome.address)
                responders.append((hop_limit, outcome.address))
            else:
                record.record_loss()
        return responders

    def snapshot(self, horizon: int, cycle: int = 0) -> TableSnapshot:
        return TableSnapshot(
            hops=tuple(replace(h) for h in self.hops),
            target_horizon=self.target_horizon.get(),
            horizon=horizon,
            cycle=cycle,
        )
