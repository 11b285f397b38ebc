from __future__ import annotations

import ipaddress
from functools import lru_cache

from fastapi import Request

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


@lru_cache(maxsize=32)
def proxy_networks(trusted_proxies: str) -> tuple[IPNetwork, ...]:
    """CIDR list from RATE_LIMIT_TRUSTED_PROXIES; unparsable entries are dropped."""
    networks = []
    for entry in filter(None, (part.strip() for part in trusted_proxies.split(","))):
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def _as_address(raw: str | None) -> IPAddress | None:
    try:
        return ipaddress.ip_address((raw or "").strip())
    except ValueError:
        return None


def _trusted(address: IPAddress, networks: tuple[IPNetwork, ...]) -> bool:
    return any(address in network for network in networks)


def is_trusted_proxy(*, proxy_ip: str | None, trusted_proxies: str) -> bool:
    address = _as_address(proxy_ip)
    return address is not None and _trusted(address, proxy_networks(trusted_proxies))


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    """Caller address used as the rate-limit key.

    X-Forwarded-For is read right to left only when the direct peer is a trusted
    proxy; the first hop outside the trusted networks wins.
    """
    peer = _as_address(request.client.host if request.client is not None else None)
    if peer is None:
        return None

    networks = proxy_networks(trusted_proxies)
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if not forwarded_for or not _trusted(peer, networks):
        return str(peer)

    for hop in reversed(forwarded_for.split(",")):
        address = _as_address(hop)
        if address is None:
            break
        if not _trusted(address, networks):
            return str(address)
    return str(peer)
