"""Client address selection for the remoteip parameter."""

import ipaddress
import logging
from collections.abc import Iterable

from src.config.constants import AddressPolicy

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_networks(networks: Iterable[str]) -> tuple[IPNetwork, ...]:
    """Parse CIDR strings (or bare addresses) into network objects."""
    return tuple(ipaddress.ip_network(n.strip(), strict=False) for n in networks)


def strip_port(address: str | None) -> str | None:
    """
    Return the host portion of a connection address.

    Handles "host:port", "[v6]:port", bare IPv4/IPv6 addresses and bare
    hostnames. Returns None for empty or malformed input.
    """
    if not address:
        return None
    address = address.strip()
    if not address:
        return None

    if address.startswith("["):
        end = address.find("]")
        if end <= 1:
            return None
        return address[1:end]

    try:
        ipaddress.ip_address(address)
        return address
    except ValueError:
        pass

    host, sep, port = address.rpartition(":")
    if sep and port.isdigit():
        return host or None
    return address


def last_forwarded_hop(forwarded_for: str | None) -> str | None:
    """Return the last entry of an X-Forwarded-For chain, trimmed."""
    if not forwarded_for or not forwarded_for.strip():
        return None
    hop = forwarded_for.split(",")[-1].strip()
    return hop or None


def is_trusted_peer(peer: str | None, trusted_proxies: tuple[IPNetwork, ...]) -> bool:
    """Check whether the connection peer may supply X-Forwarded-For."""
    if not trusted_proxies:
        return True
    if not peer:
        return False
    try:
        ip = ipaddress.ip_address(peer)
    except ValueError:
        return False
    return any(ip in network for network in trusted_proxies)


def resolve_remote_ip(
    policy: AddressPolicy,
    client_address: str | None = None,
    forwarded_for: str | None = None,
    trusted_proxies: tuple[IPNetwork, ...] = (),
) -> str | None:
    """
    Pick the address sent to the provider as remoteip.

    Args:
        policy: Address resolution policy
        client_address: Directly observed connection address, port optional
        forwarded_for: Raw X-Forwarded-For header value
        trusted_proxies: Peers allowed to supply X-Forwarded-For; empty trusts any

    Returns:
        The selected address, or None when nothing should be sent
    """
    if policy == AddressPolicy.NEVER:
        return None

    peer = strip_port(client_address)

    if policy == AddressPolicy.TRUST_FORWARDED_FOR_LAST_HOP:
        hop = last_forwarded_hop(forwarded_for)
        if hop:
            if is_trusted_peer(peer, trusted_proxies):
                return hop
            logger.warning("Ignoring X-Forwarded-For from untrusted peer %s", peer)

    return peer
