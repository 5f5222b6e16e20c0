"""
pingtrace: continuous per-hop loss and latency.

Traceroute finds the hops; ping keeps asking them how they are doing.
"""

__version__ = "0.1.0"

from .models import (
    OutcomeKind, Reply, LimitExceeded, Unreachable, Timeout, ProbeOutcome,
    HopRecord, HopTable, TargetHorizon, TableSnapshot,
)
from .errors import PingTraceError, ResolutionError
from .prober import Prober, HopProber
from .scheduler import CycleScheduler, SchedulerConfig, CancelToken
from .render import Renderer, LiveRenderer, ReportRenderer, EventRenderer
