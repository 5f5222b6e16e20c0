"""
Hop Prober: exactly one probe per call, classified into one of four outcomes.

Pure with respect to shared state: safe to run many at once, one per
hop-limit, with no locking.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import logging
import time

from .errors import DestinationUnreachable, EchoTimeout, HopLimitExceeded
from .icmp import EchoSession, EchoTransport
from .models import (
    IPAddress, ProbeOutcome, Reply, LimitExceeded, Unreachable, Timeout,
)

logger = logging.getLogger("pingtrace")


class Prober(ABC):
    @abstractmethod
    def probe(self, destination: IPAddress, hop_limit: int,
              timeout_ms: int) -> ProbeOutcome:
        """Send exactly one probe for destination@hop_limit and classify it."""
        raise NotImplementedError


class HopProber(Prober):
    """
    Classifies whatever the transport reports. Never raises: a probe that
    cannot be built or whose answer makes no sense is a Timeout.
    """

    def __init__(self, transport: EchoTransport):
        self.transport = transport

    def probe(self, destination: IPAddress, hop_limit: int,
              timeout_ms: int) -> ProbeOutcome:
        try:
            session = self.transport.open(hop_limit, timeout_ms)
        except Exception as e:
            logger.debug(f"hop {hop_limit}: probe setup failed: {e}")
            return Timeout()

        started = time.perf_counter()
        try:
            rtt = session.send(destination)
        except HopLimitExceeded as e:
            if e.responder is None:
                return Timeout()
            # the precise RTT for this signal is unreliable; use wall clock
            elapsed = (time.perf_counter() - started) * 1000.0
            return LimitExceeded(address=e.responder, rtt=elapsed)
        except DestinationUnreachable as e:
            if e.responder is None:
                return Timeout()
            return Unreachable(address=e.responder)
        except EchoTimeout:
            return Timeout()
        except Exception as e:
            logger.debug(f"hop {hop_limit}: probe error: {type(e).__name__}: {e}")
            return Timeout()
        finally:
            _close(session, hop_limit)

        return Reply(address=destination, rtt=rtt)


def _close(session: EchoSession, hop_limit: int) -> None:
    """The answer is already classified; a failing close only gets logged."""
    try:
        session.close()
    except Exception as e:
        logger.debug(f"hop {hop_limit}: session close failed: {type(e).__name__}: {e}")
