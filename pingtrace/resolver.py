"""
Name resolution: forward for the target, reverse for each hop.
"""

from __future__ import annotations
from ipaddress import ip_address
from typing import Optional
import logging
import socket

from .errors import ResolutionError
from .models import IPAddress

logger = logging.getLogger("pingtrace")


def resolve_target(target: str) -> IPAddress:
    """
    Literal addresses pass straight through. Hostnames go through
    getaddrinfo; IPv4 wins when both families come back.
    """
    try:
        return ip_address(target.strip())
    except ValueError:
        pass

    try:
        results = socket.getaddrinfo(target, None, 0, socket.SOCK_RAW)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"Failed to resolve {target}: {e}") from e

    addresses = []
    for family, _, _, _, sockaddr in results:
        try:
            addresses.append(ip_address(sockaddr[0].split("%")[0]))
        except ValueError:
            continue

    if not addresses:
        raise ResolutionError(f"No IP found for {target}")

    for addr in addresses:
        if addr.version == 4:
            logger.info(f"DNS resolved: {target} → {addr}")
            return addr
    logger.info(f"DNS resolved: {target} → {addresses[0]} (no IPv4)")
    return addresses[0]


class ReverseResolver:
    """PTR lookups. Failure is an answer too: None."""

    def lookup(self, address: IPAddress) -> Optional[str]:
        literal = str(address)
        try:
            name = socket.gethostbyaddr(literal)[0]
        except OSError as e:            # herror, gaierror, timeouts
            logger.debug(f"Reverse lookup failed: {literal}: {e}")
            return None
        if not name or name == literal:
            return None
        return name
