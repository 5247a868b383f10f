# kindcluster

Building blocks for describing and preparing local Kubernetes clusters whose
nodes run as containers. It is a library: it has no command-line program.

## What is in the package

- `kindcluster.v1alpha4`: the `v1alpha4` cluster config schema as
  dataclasses (`Cluster`, `Node`, `Networking`, `Mount`, `PortMapping`,
  `PatchJSON6902`, `TypeMeta`) and enums (`NodeRole`, `ClusterIPFamily`,
  `ProxyMode`, `MountPropagation`, `PortMappingProtocol`).
  - `load_cluster(text)` decodes YAML.
  - `cluster_from_dict` and `cluster_to_dict` convert to and from plain data.
    `cluster_to_dict` leaves out empty fields.
  - `parse_mount` and `parse_port_mapping` decode single entries.
  - `set_defaults_cluster` and `set_defaults_node` fill in defaults in place.
  - Malformed input raises `ConfigError`.
- `kindcluster.constants`: the default cluster name (`kind`), the node role
  values and the default node image.
- `kindcluster.kindnetd`: the `IPFamily` enum and these helpers:
  - `is_ipv6_string`, `is_ipv6_cidr_string` and `split_cidrs` classify
    addresses and CIDRs by IP family.
  - `detect_ip_family` reads a comma separated pod subnet list.
  - `internal_ips` and `pod_cidrs_for_node` read Kubernetes node objects
    given as dicts.
  - `probe_tcp(address, timeout)` checks that a TCP connection can be made.
- `kindcluster.cni`:
  - `compute_cni_config_inputs` works out the inputs from a node dict.
  - `render_cni_config` produces the conflist.
  - `CNIConfigWriter.write` writes it atomically. It goes through a
    `.temp` file and a rename, and skips the write when the inputs have
    not changed. It returns whether it wrote.
  - `compute_bridge_mtu()` reads the MTU of `eth0` from
    `/sys/class/net/eth0/mtu`. It raises `LookupError` when there is no
    such device.
- `kindcluster.kubeadmconfig`:
  - `labels_to_comma_separated` formats labels as `key1=value1,key2=value2`.
  - `remove_metadata` strips the `metadata: name: config` stanza.
  - `node_address` picks the node address for IPv4, IPv6 or dual stack
    clusters. For dual stack the family of the primary service subnet
    comes first.
- `kindcluster.waitforready`:
  - `try_until(deadline, attempt)` retries against a `time.monotonic()`
    deadline.
  - `statuses_ready` checks a kubectl status line.
  - `format_duration` rounds to whole seconds and formats like `1h2m3s`.
  - `waiting_message` builds the status text.
- `kindcluster.options`:
  - `ClusterOptions` holds the creation options. The composable
    `create_with_*` options set them, and `apply_options` applies them in
    order.
  - `fixup_options` fills in the config.
  - `validate_provider_info` checks a `ProviderInfo` and raises
    `ProviderRequirementError` when a rootless provider lacks cgroup v2 or
    resource delegation.
  - `name_is_probably_too_long` flags names over 50 characters.
  - `pick_salutation` returns one of the closing messages.
- `kindcluster.actions`: `ActionContext` carries the logger, status,
  provider and config. `ActionContext.nodes()` asks the provider (any object
  with `list_nodes(cluster_name)`) only once and caches the result.
- `kindcluster.app`: `check_quiet(args)` reports whether `-q` / `--quiet`
  is set. It ignores unknown flags and stops at `-h` / `--help`.

## Loading a cluster config

```python
from kindcluster.v1alpha4 import load_cluster, set_defaults_cluster, cluster_to_dict

text = """
kind: Cluster
apiVersion: kind.x-k8s.io/v1alpha4
nodes:
- role: control-plane
- role: worker
  extraPortMappings:
  - containerPort: 80
    hostPort: 8080
    protocol: tcp
"""

cluster = load_cluster(text)
set_defaults_cluster(cluster)
print(cluster_to_dict(cluster))
```

Port mapping protocols are case-insensitive and are stored upper-cased.
Unknown protocols and unknown mount propagation modes raise `ConfigError`.

Defaulting a cluster with no nodes gives it a single control-plane node
with the default image. It also sets these defaults:

- the `ipv4` family
- the `127.0.0.1` API server address
- the `10.244.0.0/16` pod subnet
- the `10.96.0.0/16` service subnet
- the `iptables` kube-proxy mode

IPv6 clusters get `::1`, `fd00:10:244::/56` and `fd00:10:96::/112` instead.
Dual stack clusters get both subnets, comma separated.

## Creation options

```python
from kindcluster.options import (
    ClusterOptions,
    apply_options,
    create_with_node_image,
    create_with_retain,
    fixup_options,
)

opts = ClusterOptions()
apply_options(opts, [create_with_node_image("kindest/node:v1.33.1"), create_with_retain(True)])
fixup_options(opts)
```

`fixup_options` does the following, in order:

1. Creates an empty `Cluster` if there is none.
2. Applies `name_override`.
3. Puts `node_image` on every node.
4. Fills in the defaults.

`create_with_config_file` and `create_with_raw_config` read YAML through
`load_cluster`. `create_with_wait_for_ready` accepts seconds or a
`timedelta`.

## Networking helpers

```python
from kindcluster.kindnetd import split_cidrs, detect_ip_family

v4, v6 = split_cidrs(["10.244.0.0/16", "fd00:10:244::/56"])
family = detect_ip_family("10.244.0.0/16,fd00:10:244::/56")  # IPFamily.DUAL_STACK
```

## What the package does not do

The package describes, checks and prepares clusters, but it does not run
them:

- It does not start or delete node containers.
- It does not run kubeadm or kubectl.
- It does not export kubeconfig files.
- It does not program routes or iptables rules.
- It has no command-line program or daemon.

The `Provider` in `kindcluster.actions` is only a protocol. You supply the
object that lists nodes.