"""Helpers that shape the kubeadm config written to each node."""

from __future__ import annotations

import ipaddress
from typing import Mapping

from kindcluster.v1alpha4 import ClusterIPFamily

_GENERATED_METADATA = "metadata:\n  name: config\n"


def labels_to_comma_separated(labels: Mapping[str, str]) -> str:
    """Join labels as "key1=value1,key2=value2"."""
    return ",".join(f"{key}={value}" for key, value in labels.items())


def remove_metadata(kustomized: str) -> str:
    """Strip the metadata.name stanza used for patch matching; kubeadm rejects it."""
    return kustomized.replace(_GENERATED_METADATA, "")


def _parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _cidr_is_ipv4(cidr: str) -> bool:
    """Return whether a CIDR's address is IPv4; raise ValueError if it is not a CIDR."""
    addr_text, sep, prefix = cidr.partition("/")
    addr = _parse_ip(addr_text)
    if (
        not sep
        or not (prefix.isascii() and prefix.isdigit())
        or addr is None
        or int(prefix) > addr.max_prefixlen
    ):
        raise ValueError(f"invalid CIDR address: {cidr}")
    return addr.version == 4 or addr.ipv4_mapped is not None


def node_address(
    ip_family: ClusterIPFamily | str,
    service_subnet: str,
    ipv4_address: str,
    ipv6_address: str,
) -> str:
    """Return the node address kubeadm should use for the cluster's IP family.

    For dual stack clusters both addresses are given, the family of the
    primary service subnet first.
    """
    if ip_family not in (ClusterIPFamily.IPV6, ClusterIPFamily.DUAL_STACK):
        return ipv4_address
    if _parse_ip(ipv6_address) is None:
        raise ValueError(
            f"failed to get IPv6 address for node (got {ipv6_address!r}); "
            "is the node provider configured to use IPv6 correctly?"
        )
    if ip_family != ClusterIPFamily.DUAL_STACK:
        return ipv6_address
    primary = service_subnet.split(",")[0]
    try:
        primary_is_v4 = _cidr_is_ipv4(primary)
    except ValueError as exc:
        raise ValueError(
            f"failed to parse primary Service Subnet {primary} ({service_subnet}): {exc}"
        ) from exc
    if primary_is_v4:
        return f"{ipv4_address},{ipv6_address}"
    return f"{ipv6_address},{ipv4_address}"