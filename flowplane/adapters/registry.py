"""
Cluster registry — the closed set of provisioning backends.

Backends are selected at start-up from the ``clusters`` variable, a
comma-separated list of names. Unknown names are ignored with a
warning; a name listed twice yields one manager.
"""

from __future__ import annotations

import logging

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.clusters import GceClusterManager, MinikubeClusterManager
from flowplane.core.environment import Environment

logger = logging.getLogger(__name__)

CLUSTER_BACKENDS: dict[str, type[ClusterManager]] = {
    "gce": GceClusterManager,
    "minikube": MinikubeClusterManager,
}


def available_backends() -> list[str]:
    """Names accepted in the ``clusters`` variable."""
    return list(CLUSTER_BACKENDS)


def parse_cluster_names(values: list[str]) -> list[str]:
    """Split, trim and de-duplicate cluster names, keeping order."""
    names: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item and item not in names:
                names.append(item)
    return names


def select_cluster_managers(env: Environment) -> list[ClusterManager]:
    """Instantiate the backends named by the ``clusters`` variable."""
    managers: list[ClusterManager] = []
    for name in parse_cluster_names(env.all("clusters")):
        backend = CLUSTER_BACKENDS.get(name)
        if backend is None:
            logger.warning("Unknown cluster backend %r ignored (known: %s)",
                           name, ", ".join(CLUSTER_BACKENDS))
            continue
        managers.append(backend(env))
    logger.debug("Selected cluster managers: %s", [m.name for m in managers])
    return managers
