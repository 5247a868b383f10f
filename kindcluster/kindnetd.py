"""Address family helpers and node inspection for the kindnet daemon."""

from __future__ import annotations

import ipaddress
import logging
import socket
from enum import Enum
from typing import Any, Iterable, Mapping

log = logging.getLogger(__name__)


class IPFamily(str, Enum):
    """The networking model kindnet operates in."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DUAL_STACK = "dualstack"


def _parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _is_v6_only(addr: ipaddress.IPv4Address | ipaddress.IPv6Address | None) -> bool:
    return addr is not None and addr.version == 6 and addr.ipv4_mapped is None


def is_ipv6_string(ip: str) -> bool:
    """Return whether ip is an IPv6 address (IPv4-mapped addresses are not)."""
    return _is_v6_only(_parse_ip(ip))


def is_ipv6_cidr_string(cidr: str) -> bool:
    """Return whether cidr is a valid IPv6 CIDR."""
    addr_text, sep, prefix = cidr.partition("/")
    if not sep or not (prefix.isascii() and prefix.isdigit()):
        return False
    addr = _parse_ip(addr_text)
    if addr is None or int(prefix) > addr.max_prefixlen:
        return False
    return _is_v6_only(addr)


def split_cidrs(cidrs: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split CIDRs by family, returning the IPv4 list and then the IPv6 list."""
    v4: list[str] = []
    v6: list[str] = []
    for subnet in cidrs:
        (v6 if is_ipv6_cidr_string(subnet) else v4).append(subnet)
    return v4, v6


def internal_ips(node: Mapping[str, Any]) -> set[str]:
    """Return the InternalIP addresses of a Kubernetes node object."""
    addresses = (node.get("status") or {}).get("addresses") or []
    return {a.get("address", "") for a in addresses if a.get("type") == "InternalIP"}


def detect_ip_family(pod_subnet: str) -> IPFamily:
    """Detect the cluster IP family from a comma separated pod subnet list."""
    if not pod_subnet:
        raise ValueError("missing pod subnet (POD_SUBNET)")
    v4, v6 = split_cidrs(pod_subnet.strip().split(","))
    if v4 and v6:
        return IPFamily.DUAL_STACK
    if v6:
        return IPFamily.IPV6
    if v4:
        return IPFamily.IPV4
    raise ValueError(f"podSubnets ClusterCIDR/Pod_Subnet: {pod_subnet}")


def pod_cidrs_for_node(node: Mapping[str, Any], ip_family: IPFamily) -> list[str]:
    """Return the pod CIDRs to route to another node, empty if it has none."""
    spec = node.get("spec") or {}
    if ip_family == IPFamily.DUAL_STACK:
        return list(spec.get("podCIDRs") or [])
    pod_cidr = spec.get("podCIDR") or ""
    return [pod_cidr] if pod_cidr else []


def _split_host_port(address: str) -> tuple[str, int | str]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1 : end + 2] != ":":
            raise ValueError(f"missing port in address {address}")
        host, port = address[1:end], address[end + 2 :]
    else:
        host, sep, port = address.rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address {address}")
        if ":" in host:
            raise ValueError(f"too many colons in address {address}")
    return host, int(port) if port.isascii() and port.isdigit() else port


def probe_tcp(address: str, timeout: float) -> bool:
    """Return whether a TCP connection to host:port succeeds within timeout seconds."""
    log.info("probe TCP address %s", address)
    try:
        host, port = _split_host_port(address)
        socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (ValueError, OSError) as exc:
        log.warning("DNS problem %s: %s", address, exc)
        return False

    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except TimeoutError:
        log.warning("TIMEOUT %s", address)
    except ConnectionRefusedError:
        log.warning("REFUSED %s", address)
    except OSError as exc:
        log.warning("OTHER %s: %s", address, exc)
    return False