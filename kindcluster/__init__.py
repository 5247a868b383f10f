"""Cluster configuration, defaulting, CNI and kubeadm helpers for local container-node Kubernetes clusters."""

__version__ = "0.1.0"

__all__ = [
    "actions",
    "app",
    "cni",
    "constants",
    "kindnetd",
    "kubeadmconfig",
    "options",
    "v1alpha4",
    "waitforready",
]