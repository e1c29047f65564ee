"""Adapters — external command execution and cluster backends.

Public re-exports for convenient access.
"""

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.mock import MockClusterManager
from flowplane.adapters.registry import CLUSTER_BACKENDS, select_cluster_managers
from flowplane.adapters.shell.command import Command

__all__ = [
    "CLUSTER_BACKENDS",
    "ClusterManager",
    "Command",
    "MockClusterManager",
    "select_cluster_managers",
]
