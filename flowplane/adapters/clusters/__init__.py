"""Cluster backends."""

from flowplane.adapters.clusters.gce import GceClusterManager
from flowplane.adapters.clusters.minikube import MinikubeClusterManager

__all__ = [
    "GceClusterManager",
    "MinikubeClusterManager",
]
