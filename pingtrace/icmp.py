"""
ICMP echo primitive: one echo, one hop-limit, one answer.

The prober only sees the abstract EchoTransport / EchoSession pair:

    transport.open(hop_limit, timeout_ms)  → EchoSession   (may raise)
    session.send(destination)              → rtt in ms     on echo reply
                                           ✗ HopLimitExceeded(responder)
                                           ✗ DestinationUnreachable(responder)
                                           ✗ EchoTimeout
                                           ✗ EchoError     anything else

ScapyTransport is the real thing: a raw L3 socket per probe, built and
matched by scapy. It needs CAP_NET_RAW (or root). Without it, open() fails
and the prober downgrades the probe to a timeout.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from ipaddress import ip_address
from typing import Optional
import logging
import random
import time

from scapy.config import conf
from scapy.layers.inet import IP, ICMP
from scapy.layers.inet6 import (
    IPv6, ICMPv6EchoRequest, ICMPv6EchoReply,
    ICMPv6TimeExceeded, ICMPv6DestUnreach,
)

from .errors import (
    EchoError, EchoTimeout, HopLimitExceeded, DestinationUnreachable,
)
from .models import IPAddress

logger = logging.getLogger("pingtrace")

ICMP_ECHO_REPLY = 0
ICMP_DEST_UNREACH = 3
ICMP_TIME_EXCEEDED = 11

MAX_HOP_LIMIT = 255


# ============================================================
# Abstract primitive
# ============================================================

class EchoSession(ABC):
    """One configured probe context. Use as a context manager."""

    def __enter__(self) -> "EchoSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @abstractmethod
    def send(self, destination: IPAddress) -> float:
        """Send one echo and block until answered or timed out."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class EchoTransport(ABC):
    @abstractmethod
    def open(self, hop_limit: int, timeout_ms: int) -> EchoSession:
        raise NotImplementedError


def check_hop_limit(hop_limit: int) -> None:
    if not 1 <= hop_limit <= MAX_HOP_LIMIT:
        raise EchoError(f"hop limit {hop_limit} outside 1..{MAX_HOP_LIMIT}")


# ============================================================
# Scapy implementation
# ============================================================

class ScapySession(EchoSession):

    def __init__(self, sock, hop_limit: int, timeout_ms: int, ipv6: bool):
        self._sock = sock
        self.hop_limit = hop_limit
        self.timeout_ms = timeout_ms
        self.ipv6 = ipv6
        # distinct id per probe so sibling probes never claim each other's answers
        self._ident = random.randint(1, 0xFFFF)

    def _build(self, destination: IPAddress):
        if self.ipv6:
            return (IPv6(dst=str(destination), hlim=self.hop_limit)
                    / ICMPv6EchoRequest(id=self._ident, seq=self.hop_limit))
        return (IP(dst=str(destination), ttl=self.hop_limit)
                / ICMP(id=self._ident, seq=self.hop_limit))

    def send(self, destination: IPAddress) -> float:
        packet = self._build(destination)
        started = time.perf_counter()
        reply = self._sock.sr1(packet, timeout=self.timeout_ms / 1000.0, verbose=0)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        if reply is None:
            raise EchoTimeout(f"no answer within {self.timeout_ms}ms")

        responder = _responder(reply)
        if self.ipv6:
            if reply.haslayer(ICMPv6TimeExceeded):
                raise HopLimitExceeded(responder)
            if reply.haslayer(ICMPv6DestUnreach):
                raise DestinationUnreachable(responder)
            if reply.haslayer(ICMPv6EchoReply):
                return elapsed_ms
        elif reply.haslayer(ICMP):
            icmp_type = reply[ICMP].type
            if icmp_type == ICMP_TIME_EXCEEDED:
                raise HopLimitExceeded(responder)
            if icmp_type == ICMP_DEST_UNREACH:
                raise DestinationUnreachable(responder)
            if icmp_type == ICMP_ECHO_REPLY:
                return elapsed_ms

        raise EchoError(f"unclassified answer from {responder}: {reply.summary()}")

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError as e:
            logger.debug(f"Socket close error (hop {self.hop_limit}): {e}")


class ScapyTransport(EchoTransport):
    """Raw-socket echo via scapy. One socket per probe, closed after."""

    def __init__(self, ipv6: bool = False):
        self.ipv6 = ipv6

    def open(self, hop_limit: int, timeout_ms: int) -> ScapySession:
        check_hop_limit(hop_limit)
        sock = conf.L3socket6() if self.ipv6 else conf.L3socket()
        return ScapySession(sock, hop_limit, timeout_ms, self.ipv6)


def _responder(reply) -> Optional[IPAddress]:
    try:
        return ip_address(reply.src)
    except (AttributeError, ValueError):
        return None
