"""
Cluster manager base — the contract between scenarios and provisioning
backends.

A scenario can provision extra clusters (a GKE cluster, a local
minikube) and register them as pools. Each backend implements this
interface; scenarios only ever talk to it through ``ClusterManager``.

To add a backend:
    1. Subclass ClusterManager
    2. Implement name, provisioner, start, delete, update_params
    3. Add it to CLUSTER_BACKENDS in the registry
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from flowplane.core.environment import Environment
from flowplane.core.models.result import Result


class ClusterManager(ABC):
    """Lifecycle operations for one external cluster backend.

    ``start`` and ``delete`` run external commands and return their
    Result. Like the command executor, they NEVER raise for a failing
    command: callers check the Result.
    """

    def __init__(self, env: Environment):
        self._env = env

    @property
    def env(self) -> Environment:
        return self._env

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in configuration (e.g., 'gce')."""

    @property
    @abstractmethod
    def provisioner(self) -> str:
        """Provisioner the platform uses for this cluster's pool."""

    @abstractmethod
    def start(self) -> Result:
        """Create (or boot) the cluster."""

    @abstractmethod
    def delete(self) -> Result:
        """Destroy the cluster."""

    @abstractmethod
    def update_params(self) -> list[str]:
        """Extra ``cluster-update`` arguments describing how to reach it.

        Only meaningful after a successful ``start``.
        """

    @property
    def pool_name(self) -> str:
        return f"ipool-{self.name}"

    @property
    def cluster_name(self) -> str:
        return f"icluster-{self.name}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
