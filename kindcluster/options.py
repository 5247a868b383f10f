"""Cluster creation options and the checks run before a cluster is created."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import timedelta
from os import PathLike
from pathlib import Path
from typing import Callable, Iterable

from kindcluster.v1alpha4 import Cluster, load_cluster, set_defaults_cluster

CLUSTER_NAME_MAX = 50
"""Names longer than this may break hostnames once "-control-plane" is appended."""

SALUTATIONS = (
    "Have a nice day! 👋",
    "Thanks for using kind! 😊",
    "Not sure what to do next? 😅  Check out https://kind.sigs.k8s.io/docs/user/quick-start/",
    "Have a question, bug, or feature request? Let us know! https://kind.sigs.k8s.io/#community 🙂",
)

_ROOTLESS_DOCS = "see https://kind.sigs.k8s.io/docs/user/rootless/"


class ProviderRequirementError(RuntimeError):
    """Raised when the node provider cannot host a kind cluster."""


@dataclass
class ProviderInfo:
    """Capabilities reported by a node provider."""

    rootless: bool = False
    cgroup2: bool = False
    supports_memory_limit: bool = False
    supports_pids_limit: bool = False
    supports_cpu_shares: bool = False


@dataclass
class ClusterOptions:
    """Options controlling cluster creation."""

    config: Cluster | None = None
    name_override: str = ""
    node_image: str = ""
    retain: bool = False
    wait_for_ready: float = 0.0
    kubeconfig_path: str = ""
    stop_before_setting_up_kubernetes: bool = False
    display_usage: bool = False
    display_salutation: bool = False


CreateOption = Callable[[ClusterOptions], None]
"""A callable that adjusts ClusterOptions, raising if it cannot."""


def validate_provider_info(info: ProviderInfo) -> None:
    """Raise ProviderRequirementError if a rootless provider lacks what kind needs."""
    if not info.rootless:
        return
    if not info.cgroup2:
        raise ProviderRequirementError(
            f"running kind with rootless provider requires cgroup v2, {_ROOTLESS_DOCS}"
        )
    if not (
        info.supports_memory_limit and info.supports_pids_limit and info.supports_cpu_shares
    ):
        raise ProviderRequirementError(
            "running kind with rootless provider requires setting systemd property "
            f'"Delegate=yes", {_ROOTLESS_DOCS}'
        )


def fixup_options(opts: ClusterOptions) -> None:
    """Ensure opts has a config, apply the name and image overrides, and default it."""
    if opts.config is None:
        opts.config = Cluster()
    if opts.name_override:
        opts.config.name = opts.name_override
    if opts.node_image:
        for node in opts.config.nodes:
            node.image = opts.node_image
    set_defaults_cluster(opts.config)


def name_is_probably_too_long(name: str) -> bool:
    """Return whether a cluster name is likely too long to work on some systems."""
    return len(name) > CLUSTER_NAME_MAX


def pick_salutation(rng: random.Random | None = None) -> str:
    """Pick one of the friendly closing messages at random."""
    return (rng or random.Random()).choice(SALUTATIONS)


def create_with_config_file(path: str | PathLike[str]) -> CreateOption:
    """Use the cluster config read from path; an empty path means the default config."""

    def apply(opts: ClusterOptions) -> None:
        if not str(path):
            opts.config = Cluster()
            return
        opts.config = load_cluster(Path(path).read_bytes())

    return apply


def create_with_raw_config(raw: str | bytes) -> CreateOption:
    """Use the cluster config decoded from raw YAML."""

    def apply(opts: ClusterOptions) -> None:
        opts.config = load_cluster(raw)

    return apply


def create_with_v1alpha4_config(config: Cluster) -> CreateOption:
    """Use an in-memory cluster config."""

    def apply(opts: ClusterOptions) -> None:
        opts.config = config

    return apply


def create_with_node_image(node_image: str) -> CreateOption:
    """Override the image on every node."""

    def apply(opts: ClusterOptions) -> None:
        opts.node_image = node_image

    return apply


def create_with_retain(retain: bool) -> CreateOption:
    """Keep nodes around after a failed create, for debugging."""

    def apply(opts: ClusterOptions) -> None:
        opts.retain = retain

    return apply


def create_with_wait_for_ready(wait_time: float | timedelta) -> CreateOption:
    """Wait up to wait_time (seconds or timedelta) for the control plane to be Ready."""
    seconds = wait_time.total_seconds() if isinstance(wait_time, timedelta) else float(wait_time)

    def apply(opts: ClusterOptions) -> None:
        opts.wait_for_ready = seconds

    return apply


def create_with_kubeconfig_path(explicit_path: str) -> CreateOption:
    """Set the explicit kubeconfig path."""

    def apply(opts: ClusterOptions) -> None:
        opts.kubeconfig_path = explicit_path

    return apply


def create_with_stop_before_setting_up_kubernetes(stop: bool) -> CreateOption:
    """Stop after creating node containers, without setting up Kubernetes."""

    def apply(opts: ClusterOptions) -> None:
        opts.stop_before_setting_up_kubernetes = stop

    return apply


def create_with_display_usage(display_usage: bool) -> CreateOption:
    """Show usage hints after creation."""

    def apply(opts: ClusterOptions) -> None:
        opts.display_usage = display_usage

    return apply


def create_with_display_salutation(display_salutation: bool) -> CreateOption:
    """Show a salutation at the end of creation."""

    def apply(opts: ClusterOptions) -> None:
        opts.display_salutation = display_salutation

    return apply


def apply_options(opts: ClusterOptions, options: Iterable[CreateOption]) -> ClusterOptions:
    """Apply options in order to opts, stopping at the first that raises."""
    for option in options:
        option(opts)
    return opts