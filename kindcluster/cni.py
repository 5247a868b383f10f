"""CNI configuration rendering and atomic writing for the kindnet daemon."""

from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from string import Template
from typing import Any, Mapping

from kindcluster.kindnetd import is_ipv6_cidr_string

CNI_CONFIG_PATH = "/etc/cni/net.d/10-kindnet.conflist"
"""Where the computed CNI config is written."""

DEFAULT_ROUTES = ("0.0.0.0/0", "::/0")

_SYSFS_NET = Path("/sys/class/net")

_TEMPLATE = Template(
    "\n".join(
        [
            "",
            "{",
            '\t"cniVersion": "0.3.1",',
            '\t"name": "kindnet",',
            '\t"plugins": [',
            "\t{",
            '\t\t"type": "ptp",',
            '\t\t"ipMasq": false,',
            '\t\t"ipam": {',
            '\t\t\t"type": "host-local",',
            '\t\t\t"dataDir": "/run/cni-ipam-state",',
            '\t\t\t"routes": [',
            "\t\t\t\t$routes",
            "\t\t\t],",
            '\t\t\t"ranges": [',
            "\t\t\t\t$ranges",
            "\t\t\t]",
            "\t\t}",
            "\t\t$mtu",
            "\t},",
            "\t{",
            '\t\t"type": "portmap",',
            '\t\t"capabilities": {',
            '\t\t\t"portMappings": true',
            "\t\t}",
            "\t}",
            "\t]",
            "}",
            "",
        ]
    )
)


@dataclass
class CNIConfigInputs:
    """Values substituted into the CNI config."""

    pod_cidrs: list[str] = field(default_factory=list)
    default_routes: list[str] = field(default_factory=list)
    mtu: int = 0


def compute_cni_config_inputs(node: Mapping[str, Any]) -> CNIConfigInputs:
    """Compute the CNI config inputs for a Kubernetes node object."""
    spec = node.get("spec") or {}
    pod_cidrs = list(spec.get("podCIDRs") or [])
    if len(pod_cidrs) > 1:
        return CNIConfigInputs(pod_cidrs=pod_cidrs, default_routes=list(DEFAULT_ROUTES))
    # single stack: the legacy podCIDR field is kept for backwards compatibility
    pod_cidr = spec.get("podCIDR") or ""
    route = DEFAULT_ROUTES[1] if is_ipv6_cidr_string(pod_cidr) else DEFAULT_ROUTES[0]
    return CNIConfigInputs(pod_cidrs=[pod_cidr], default_routes=[route])


def _items(values: list[str], render: str) -> str:
    return "".join(
        f"\n\t\t\t\t{',' if index else ''}\n\t\t\t\t{render.format(value)}"
        for index, value in enumerate(values)
    )


def render_cni_config(inputs: CNIConfigInputs) -> str:
    """Render the kindnet CNI conflist for the given inputs."""
    mtu = f',\n\t\t"mtu": {inputs.mtu}\n\t\t' if inputs.mtu else ""
    return _TEMPLATE.substitute(
        routes=_items(inputs.default_routes, '{{ "dst": "{}" }}'),
        ranges=_items(inputs.pod_cidrs, '[ {{ "subnet": "{}" }} ]'),
        mtu=mtu,
    )


def compute_bridge_mtu() -> int:
    """Return the MTU of the eth0 interface; raise LookupError if there is none."""
    try:
        text = (_SYSFS_NET / "eth0" / "mtu").read_text(encoding="ascii")
    except FileNotFoundError:
        raise LookupError("Found no eth0 device") from None
    return int(text.strip())


@dataclass
class CNIConfigWriter:
    """Writes the CNI config, skipping rewrites when the inputs are unchanged."""

    path: str | os.PathLike[str] = CNI_CONFIG_PATH
    mtu: int = 0
    last_inputs: CNIConfigInputs = field(default_factory=CNIConfigInputs, init=False)

    def write(self, inputs: CNIConfigInputs) -> bool:
        """Write the config for inputs; return False if nothing had to be written."""
        inputs = replace(
            inputs,
            pod_cidrs=list(inputs.pod_cidrs),
            default_routes=list(inputs.default_routes),
            mtu=self.mtu,
        )
        if inputs == self.last_inputs:
            return False

        target = os.fspath(self.path)
        # an extension CNI does not recognise, renamed into place afterwards
        temp = target + ".temp"
        try:
            with open(temp, "w", encoding="utf-8") as handle:
                handle.write(render_cni_config(inputs))
                handle.flush()
                with contextlib.suppress(OSError):
                    os.fsync(handle.fileno())
        except BaseException:
            with contextlib.suppress(OSError):
                os.remove(temp)
            raise
        os.replace(temp, target)
        self.last_inputs = inputs
        return True