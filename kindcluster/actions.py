"""Shared context handed to each cluster creation step."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from kindcluster.v1alpha4 import Cluster


class Provider(Protocol):
    """A node provider able to list the nodes of a cluster."""

    def list_nodes(self, cluster: str) -> Sequence[Any]:
        """Return the nodes belonging to the named cluster."""
        ...


@dataclass
class ActionContext:
    """Data supplied to every creation action."""

    logger: Any
    status: Any
    provider: Provider
    config: Cluster
    _nodes: Sequence[Any] | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def nodes(self) -> Sequence[Any]:
        """Return the cluster's nodes, asking the provider only the first time."""
        with self._lock:
            cached = self._nodes
        if cached is not None:
            return cached
        found = self.provider.list_nodes(self.config.name)
        with self._lock:
            self._nodes = found
        return found