import pytest

from kindcluster.constants import DEFAULT_NODE_IMAGE
from kindcluster.v1alpha4 import (
    Cluster,
    ClusterIPFamily,
    ConfigError,
    MountPropagation,
    Networking,
    Node,
    NodeRole,
    PatchJSON6902,
    PortMappingProtocol,
    ProxyMode,
    cluster_from_dict,
    cluster_to_dict,
    load_cluster,
    parse_mount,
    parse_port_mapping,
    set_defaults_cluster,
    set_defaults_node,
)

SAMPLE = """
kind: Cluster
apiVersion: kind.x-k8s.io/v1alpha4
name: demo
nodes:
- role: control-plane
  labels:
    tier: frontend
  extraMounts:
  - containerPath: /foo
    hostPath: /bar
    readOnly: true
    propagation: HostToContainer
  extraPortMappings:
  - containerPort: 80
    hostPort: 8000
    listenAddress: 127.0.0.1
    protocol: tcp
- role: worker
  image: custom/node:v1
networking:
  ipFamily: dual
  apiServerPort: 6443
  disableDefaultCNI: true
  dnsSearch: []
featureGates:
  SomeGate: true
runtimeConfig:
  api/alpha: "false"
kubeadmConfigPatchesJSON6902:
- group: kubeadm.k8s.io
  version: v1beta3
  kind: ClusterConfiguration
  patch: "- op: add"
containerdConfigPatches:
- "[plugins]"
"""


def test_load_sample_fields():
    cluster = load_cluster(SAMPLE)
    assert cluster.kind == "Cluster"
    assert cluster.api_version == "kind.x-k8s.io/v1alpha4"
    assert cluster.name == "demo"
    assert [n.role for n in cluster.nodes] == [NodeRole.CONTROL_PLANE, NodeRole.WORKER]
    first = cluster.nodes[0]
    assert first.labels == {"tier": "frontend"}
    assert first.extra_mounts[0].readonly is True
    assert first.extra_mounts[0].propagation is MountPropagation.HOST_TO_CONTAINER
    assert first.extra_port_mappings[0].protocol is PortMappingProtocol.TCP
    assert first.extra_port_mappings[0].host_port == 8000
    assert cluster.networking.ip_family is ClusterIPFamily.DUAL_STACK
    assert cluster.networking.disable_default_cni is True
    assert cluster.networking.dns_search == []
    assert cluster.feature_gates == {"SomeGate": True}
    assert cluster.kubeadm_config_patches_json6902[0].kind == "ClusterConfiguration"


def test_round_trip_through_dict():
    cluster = load_cluster(SAMPLE)
    assert cluster_from_dict(cluster_to_dict(cluster)) == cluster


def test_to_dict_omits_empty_but_keeps_patch_fields():
    cluster = Cluster(kubeadm_config_patches_json6902=[PatchJSON6902(kind="InitConfiguration")])
    data = cluster_to_dict(cluster)
    assert "name" not in data
    assert "nodes" not in data
    assert data["networking"] == {}
    assert data["kubeadmConfigPatchesJSON6902"] == [
        {"group": "", "version": "", "kind": "InitConfiguration", "patch": ""}
    ]


def test_empty_document_loads_as_empty_cluster():
    assert load_cluster("") == Cluster()


def test_unknown_mount_propagation_rejected():
    with pytest.raises(ConfigError, match='Unknown MountPropagation: "Sideways"'):
        parse_mount({"propagation": "Sideways"})


@pytest.mark.parametrize("value", ["None", "HostToContainer", "Bidirectional"])
def test_known_mount_propagation_accepted(value):
    assert parse_mount({"propagation": value}).propagation.value == value


def test_mount_without_propagation_is_unset():
    assert parse_mount({"hostPath": "/x"}).propagation is None


@pytest.mark.parametrize("raw", ["udp", "Udp", "UDP"])
def test_port_mapping_protocol_uppercased(raw):
    assert parse_port_mapping({"protocol": raw}).protocol is PortMappingProtocol.UDP


def test_unknown_port_mapping_protocol_rejected():
    with pytest.raises(ConfigError, match='Unknown PortMappingProtocol: "ICMP"'):
        parse_port_mapping({"protocol": "icmp"})


def test_wrong_types_rejected():
    with pytest.raises(ConfigError):
        cluster_from_dict({"name": 5})
    with pytest.raises(ConfigError):
        cluster_from_dict({"nodes": "worker"})
    with pytest.raises(ConfigError):
        parse_port_mapping({"containerPort": "80"})
    with pytest.raises(ConfigError):
        load_cluster("- just\n- a list\n")


def test_invalid_yaml_rejected():
    with pytest.raises(ConfigError):
        load_cluster("name: [unclosed")


def test_unlisted_proxy_mode_kept_as_string():
    cluster = cluster_from_dict({"networking": {"kubeProxyMode": "none"}})
    assert cluster.networking.kube_proxy_mode == "none"


def test_defaults_single_node_ipv4():
    cluster = Cluster()
    set_defaults_cluster(cluster)
    assert cluster.nodes == [Node(role=NodeRole.CONTROL_PLANE, image=DEFAULT_NODE_IMAGE)]
    net = cluster.networking
    assert net.ip_family is ClusterIPFamily.IPV4
    assert net.api_server_address == "127.0.0.1"
    assert net.pod_subnet == "10.244.0.0/16"
    assert net.service_subnet == "10.96.0.0/16"
    assert net.kube_proxy_mode is ProxyMode.IPTABLES


def test_defaults_ipv6():
    cluster = Cluster(networking=Networking(ip_family=ClusterIPFamily.IPV6))
    set_defaults_cluster(cluster)
    assert cluster.networking.api_server_address == "::1"
    assert cluster.networking.pod_subnet == "fd00:10:244::/56"
    assert cluster.networking.service_subnet == "fd00:10:96::/112"


def test_defaults_dual_stack():
    cluster = Cluster(networking=Networking(ip_family=ClusterIPFamily.DUAL_STACK))
    set_defaults_cluster(cluster)
    assert cluster.networking.api_server_address == "127.0.0.1"
    assert cluster.networking.pod_subnet == "10.244.0.0/16,fd00:10:244::/56"
    assert cluster.networking.service_subnet == "10.96.0.0/16,fd00:10:96::/112"


def test_defaults_keep_explicit_values():
    cluster = Cluster(
        nodes=[Node(role=NodeRole.WORKER, image="custom/node:v1")],
        networking=Networking(pod_subnet="192.168.0.0/16", kube_proxy_mode=ProxyMode.IPVS),
    )
    set_defaults_cluster(cluster)
    assert cluster.nodes == [Node(role=NodeRole.WORKER, image="custom/node:v1")]
    assert cluster.networking.pod_subnet == "192.168.0.0/16"
    assert cluster.networking.kube_proxy_mode is ProxyMode.IPVS


def test_defaults_are_idempotent():
    cluster = load_cluster(SAMPLE)
    set_defaults_cluster(cluster)
    once = cluster_to_dict(cluster)
    set_defaults_cluster(cluster)
    assert cluster_to_dict(cluster) == once


def test_set_defaults_node_fills_role_and_image():
    node = Node()
    set_defaults_node(node)
    assert node.role is NodeRole.CONTROL_PLANE
    assert node.image == DEFAULT_NODE_IMAGE