"""
Mock cluster manager — test double for cluster backends.

Records every lifecycle call and returns configurable Results without
touching any external tool.
"""

from __future__ import annotations

from flowplane.adapters.base import ClusterManager
from flowplane.core.environment import Environment
from flowplane.core.models.result import Result


class MockClusterManager(ClusterManager):
    """Cluster backend that always succeeds unless told otherwise."""

    def __init__(
        self,
        env: Environment | None = None,
        backend_name: str = "mock",
        provisioner: str = "kubernetes",
        params: list[str] | None = None,
    ):
        super().__init__(env or Environment())
        self._name = backend_name
        self._provisioner = provisioner
        self._params = list(params or ["--addr", "https://127.0.0.1:8443"])
        self._results: dict[str, Result] = {}
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def provisioner(self) -> str:
        return self._provisioner

    def set_result(self, operation: str, result: Result) -> None:
        """Configure what ``start`` or ``delete`` returns."""
        self._results[operation] = result

    def start(self) -> Result:
        self.calls.append("start")
        return self._results.get("start", Result(command=["mock", "start"]))

    def delete(self) -> Result:
        self.calls.append("delete")
        return self._results.get("delete", Result(command=["mock", "delete"]))

    def update_params(self) -> list[str]:
        self.calls.append("update_params")
        return list(self._params)
