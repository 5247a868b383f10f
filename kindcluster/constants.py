"""Well known values shared by kind clusters."""

DEFAULT_CLUSTER_NAME = "kind"
"""The default cluster context name."""

CONTROL_PLANE_NODE_ROLE_VALUE = "control-plane"
"""A node hosting a Kubernetes control-plane (also a worker in single node clusters)."""

WORKER_NODE_ROLE_VALUE = "worker"
"""A node hosting a Kubernetes worker."""

EXTERNAL_LOAD_BALANCER_NODE_ROLE_VALUE = "external-load-balancer"
"""A node hosting the external API server load balancer; not a Kubernetes node."""

EXTERNAL_ETCD_NODE_ROLE_VALUE = "external-etcd"
"""A node hosting an external etcd instance; not a Kubernetes node."""

DEFAULT_NODE_IMAGE = (
    "kindest/node:v1.33.1"
    "@sha256:8d866994839cd096b3590681c55a6fa4a071fdaf33be7b9660e5697d2ed13002"
)
"""The default node image."""