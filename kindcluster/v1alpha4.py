"""The v1alpha4 cluster configuration: types, defaulting and YAML decoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import yaml

from kindcluster.constants import DEFAULT_NODE_IMAGE

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class ConfigError(ValueError):
    """Raised when a cluster configuration cannot be decoded."""


class NodeRole(str, Enum):
    """The role of a node in the cluster."""

    CONTROL_PLANE = "control-plane"
    WORKER = "worker"


class ClusterIPFamily(str, Enum):
    """The cluster network IP family."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DUAL_STACK = "dual"


class ProxyMode(str, Enum):
    """The kube-proxy mode."""

    IPTABLES = "iptables"
    IPVS = "ipvs"
    NFTABLES = "nftables"


class MountPropagation(str, Enum):
    """Mount propagation mode for an extra mount."""

    NONE = "None"
    HOST_TO_CONTAINER = "HostToContainer"
    BIDIRECTIONAL = "Bidirectional"


class PortMappingProtocol(str, Enum):
    """Protocol of a port mapping."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


@dataclass
class TypeMeta:
    """Object kind and API version."""

    kind: str = ""
    api_version: str = ""


@dataclass
class PatchJSON6902:
    """An inline RFC 6902 JSON patch and the resource it targets."""

    group: str = ""
    version: str = ""
    kind: str = ""
    patch: str = ""


@dataclass
class Mount:
    """A host path mounted into a node container."""

    container_path: str = ""
    host_path: str = ""
    readonly: bool = False
    selinux_relabel: bool = False
    propagation: MountPropagation | None = None


@dataclass
class PortMapping:
    """A host port mapped into a node container port."""

    container_port: int = 0
    host_port: int = 0
    listen_address: str = ""
    protocol: PortMappingProtocol | None = None


@dataclass
class Node:
    """Settings for one node container of the cluster."""

    role: NodeRole | str = ""
    image: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    extra_mounts: list[Mount] = field(default_factory=list)
    extra_port_mappings: list[PortMapping] = field(default_factory=list)
    kubeadm_config_patches: list[str] = field(default_factory=list)
    kubeadm_config_patches_json6902: list[PatchJSON6902] = field(default_factory=list)


@dataclass
class Networking:
    """Cluster wide network settings."""

    ip_family: ClusterIPFamily | str = ""
    api_server_port: int = 0
    api_server_address: str = ""
    pod_subnet: str = ""
    service_subnet: str = ""
    disable_default_cni: bool = False
    kube_proxy_mode: ProxyMode | str = ""
    dns_search: list[str] | None = None


@dataclass
class Cluster(TypeMeta):
    """A kind cluster configuration."""

    name: str = ""
    nodes: list[Node] = field(default_factory=list)
    networking: Networking = field(default_factory=Networking)
    feature_gates: dict[str, bool] = field(default_factory=dict)
    runtime_config: dict[str, str] = field(default_factory=dict)
    kubeadm_config_patches: list[str] = field(default_factory=list)
    kubeadm_config_patches_json6902: list[PatchJSON6902] = field(default_factory=list)
    containerd_config_patches: list[str] = field(default_factory=list)
    containerd_config_patches_json6902: list[str] = field(default_factory=list)


# --- defaulting -------------------------------------------------------------


def set_defaults_cluster(obj: Cluster) -> None:
    """Fill unset fields of a cluster configuration with their defaults, in place."""
    if not obj.nodes:
        obj.nodes = [Node(image=DEFAULT_NODE_IMAGE, role=NodeRole.CONTROL_PLANE)]
    for node in obj.nodes:
        set_defaults_node(node)

    net = obj.networking
    if not net.ip_family:
        net.ip_family = ClusterIPFamily.IPV4
    if not net.api_server_address:
        net.api_server_address = "::1" if net.ip_family == ClusterIPFamily.IPV6 else "127.0.0.1"
    if not net.pod_subnet:
        net.pod_subnet = {
            ClusterIPFamily.IPV6: "fd00:10:244::/56",
            ClusterIPFamily.DUAL_STACK: "10.244.0.0/16,fd00:10:244::/56",
        }.get(net.ip_family, "10.244.0.0/16")
    if not net.service_subnet:
        net.service_subnet = {
            ClusterIPFamily.IPV6: "fd00:10:96::/112",
            ClusterIPFamily.DUAL_STACK: "10.96.0.0/16,fd00:10:96::/112",
        }.get(net.ip_family, "10.96.0.0/16")
    if not net.kube_proxy_mode:
        net.kube_proxy_mode = ProxyMode.IPTABLES


def set_defaults_node(obj: Node) -> None:
    """Fill unset fields of a node with their defaults, in place."""
    if not obj.image:
        obj.image = DEFAULT_NODE_IMAGE
    if not obj.role:
        obj.role = NodeRole.CONTROL_PLANE


# --- decoding helpers -------------------------------------------------------


def _quote(value: str) -> str:
    return json.dumps(value)


def _coerce(enum_cls: type[Enum], value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what}: expected a mapping, got {type(data).__name__}")
    return data


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{key}: expected a string, got {value!r}")
    return value


def _bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{key}: expected a boolean, got {value!r}")
    return value


def _int32(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key}: expected an integer, got {value!r}")
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ConfigError(f"{key}: {value} does not fit in a 32-bit integer")
    return value


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key}: expected a list, got {value!r}")
    return value


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    items = _list(data, key)
    for item in items:
        if not isinstance(item, str):
            raise ConfigError(f"{key}: expected a list of strings, got item {item!r}")
    return list(items)


def _typed_map(data: Mapping[str, Any], key: str, value_type: type) -> dict[str, Any]:
    mapping = _mapping(data.get(key), key)
    result = {}
    for k, v in mapping.items():
        if not isinstance(k, str):
            raise ConfigError(f"{key}: expected string keys, got {k!r}")
        if not isinstance(v, value_type) or (value_type is str and isinstance(v, bool)):
            raise ConfigError(f"{key}.{k}: expected {value_type.__name__}, got {v!r}")
        result[k] = v
    return result


def _parse_patch(data: Any) -> PatchJSON6902:
    data = _mapping(data, "kubeadmConfigPatchesJSON6902")
    return PatchJSON6902(
        group=_str(data, "group"),
        version=_str(data, "version"),
        kind=_str(data, "kind"),
        patch=_str(data, "patch"),
    )


# --- decoding ---------------------------------------------------------------


def parse_mount(data: Any) -> Mount:
    """Decode an extra mount, rejecting unknown propagation modes."""
    data = _mapping(data, "extraMounts")
    raw = _str(data, "propagation")
    propagation = None
    if raw:
        try:
            propagation = MountPropagation(raw)
        except ValueError:
            raise ConfigError(f"Unknown MountPropagation: {_quote(raw)}") from None
    return Mount(
        container_path=_str(data, "containerPath"),
        host_path=_str(data, "hostPath"),
        readonly=_bool(data, "readOnly"),
        selinux_relabel=_bool(data, "selinuxRelabel"),
        propagation=propagation,
    )


def parse_port_mapping(data: Any) -> PortMapping:
    """Decode a port mapping; the protocol is case-insensitive."""
    data = _mapping(data, "extraPortMappings")
    raw = _str(data, "protocol").upper()
    protocol = None
    if raw:
        try:
            protocol = PortMappingProtocol(raw)
        except ValueError:
            raise ConfigError(f"Unknown PortMappingProtocol: {_quote(raw)}") from None
    return PortMapping(
        container_port=_int32(data, "containerPort"),
        host_port=_int32(data, "hostPort"),
        listen_address=_str(data, "listenAddress"),
        protocol=protocol,
    )


def _parse_node(data: Any) -> Node:
    data = _mapping(data, "nodes")
    role = _str(data, "role")
    return Node(
        role=_coerce(NodeRole, role) if role else "",
        image=_str(data, "image"),
        labels=_typed_map(data, "labels", str),
        extra_mounts=[parse_mount(m) for m in _list(data, "extraMounts")],
        extra_port_mappings=[parse_port_mapping(p) for p in _list(data, "extraPortMappings")],
        kubeadm_config_patches=_str_list(data, "kubeadmConfigPatches"),
        kubeadm_config_patches_json6902=[
            _parse_patch(p) for p in _list(data, "kubeadmConfigPatchesJSON6902")
        ],
    )


def _parse_networking(data: Any) -> Networking:
    data = _mapping(data, "networking")
    ip_family = _str(data, "ipFamily")
    proxy_mode = _str(data, "kubeProxyMode")
    dns_search = _str_list(data, "dnsSearch") if data.get("dnsSearch") is not None else None
    return Networking(
        ip_family=_coerce(ClusterIPFamily, ip_family) if ip_family else "",
        api_server_port=_int32(data, "apiServerPort"),
        api_server_address=_str(data, "apiServerAddress"),
        pod_subnet=_str(data, "podSubnet"),
        service_subnet=_str(data, "serviceSubnet"),
        disable_default_cni=_bool(data, "disableDefaultCNI"),
        kube_proxy_mode=_coerce(ProxyMode, proxy_mode) if proxy_mode else "",
        dns_search=dns_search,
    )


def cluster_from_dict(data: Any) -> Cluster:
    """Build a cluster configuration from decoded YAML/JSON data."""
    data = _mapping(data, "cluster")
    return Cluster(
        kind=_str(data, "kind"),
        api_version=_str(data, "apiVersion"),
        name=_str(data, "name"),
        nodes=[_parse_node(n) for n in _list(data, "nodes")],
        networking=_parse_networking(data.get("networking")),
        feature_gates=_typed_map(data, "featureGates", bool),
        runtime_config=_typed_map(data, "runtimeConfig", str),
        kubeadm_config_patches=_str_list(data, "kubeadmConfigPatches"),
        kubeadm_config_patches_json6902=[
            _parse_patch(p) for p in _list(data, "kubeadmConfigPatchesJSON6902")
        ],
        containerd_config_patches=_str_list(data, "containerdConfigPatches"),
        containerd_config_patches_json6902=_str_list(data, "containerdConfigPatchesJSON6902"),
    )


def load_cluster(text: str | bytes) -> Cluster:
    """Decode a cluster configuration from YAML text, without defaulting it."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    return cluster_from_dict(data)


# --- encoding ---------------------------------------------------------------


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _omit_empty(pairs: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in pairs.items() if v not in ("", 0, False, None, [], {})}


def _patch_to_dict(patch: PatchJSON6902) -> dict[str, Any]:
    return {"group": patch.group, "version": patch.version, "kind": patch.kind, "patch": patch.patch}


def _mount_to_dict(mount: Mount) -> dict[str, Any]:
    return _omit_empty({
        "containerPath": mount.container_path,
        "hostPath": mount.host_path,
        "readOnly": mount.readonly,
        "selinuxRelabel": mount.selinux_relabel,
        "propagation": _plain(mount.propagation),
    })


def _port_mapping_to_dict(mapping: PortMapping) -> dict[str, Any]:
    return _omit_empty({
        "containerPort": mapping.container_port,
        "hostPort": mapping.host_port,
        "listenAddress": mapping.listen_address,
        "protocol": _plain(mapping.protocol),
    })


def _node_to_dict(node: Node) -> dict[str, Any]:
    return _omit_empty({
        "role": _plain(node.role),
        "image": node.image,
        "labels": dict(node.labels),
        "extraMounts": [_mount_to_dict(m) for m in node.extra_mounts],
        "extraPortMappings": [_port_mapping_to_dict(p) for p in node.extra_port_mappings],
        "kubeadmConfigPatches": list(node.kubeadm_config_patches),
        "kubeadmConfigPatchesJSON6902": [
            _patch_to_dict(p) for p in node.kubeadm_config_patches_json6902
        ],
    })


def _networking_to_dict(net: Networking) -> dict[str, Any]:
    result = _omit_empty({
        "ipFamily": _plain(net.ip_family),
        "apiServerPort": net.api_server_port,
        "apiServerAddress": net.api_server_address,
        "podSubnet": net.pod_subnet,
        "serviceSubnet": net.service_subnet,
        "disableDefaultCNI": net.disable_default_cni,
        "kubeProxyMode": _plain(net.kube_proxy_mode),
    })
    if net.dns_search is not None:
        result["dnsSearch"] = list(net.dns_search)
    return result


def cluster_to_dict(cluster: Cluster) -> dict[str, Any]:
    """Encode a cluster configuration as plain data, leaving out empty fields."""
    result = _omit_empty({
        "kind": cluster.kind,
        "apiVersion": cluster.api_version,
        "name": cluster.name,
        "nodes": [_node_to_dict(n) for n in cluster.nodes],
    })
    result["networking"] = _networking_to_dict(cluster.networking)
    result.update(_omit_empty({
        "featureGates": dict(cluster.feature_gates),
        "runtimeConfig": dict(cluster.runtime_config),
        "kubeadmConfigPatches": list(cluster.kubeadm_config_patches),
        "kubeadmConfigPatchesJSON6902": [
            _patch_to_dict(p) for p in cluster.kubeadm_config_patches_json6902
        ],
        "containerdConfigPatches": list(cluster.containerd_config_patches),
        "containerdConfigPatchesJSON6902": list(cluster.containerd_config_patches_json6902),
    }))
    return result