"""Exception hierarchy for pingtrace."""

from __future__ import annotations
from typing import Optional


class PingTraceError(Exception):
    pass


class ResolutionError(PingTraceError):
    """Target could not be turned into an address. Fatal."""


# ============================================================
# Echo errors: raised by the probe primitive, never escape a probe
# ============================================================

class EchoError(PingTraceError):
    """The echo could not be sent or its answer could not be classified."""


class EchoTimeout(EchoError):
    pass


class HopLimitExceeded(EchoError):
    def __init__(self, responder: Optional[object] = None):
        super().__init__(f"hop limit exceeded at {responder}")
        self.responder = responder


class DestinationUnreachable(EchoError):
    def __init__(self, responder: Optional[object] = None):
        super().__init__(f"destination unreachable via {responder}")
        self.responder = responder
