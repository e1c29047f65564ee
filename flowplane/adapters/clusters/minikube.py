"""
Minikube backend — a local single-node Kubernetes cluster.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.shell.command import Command
from flowplane.core.environment import Environment
from flowplane.core.models.result import Result

logger = logging.getLogger(__name__)

_API_PORT = 8443


class MinikubeClusterManager(ClusterManager):
    """Boot minikube and point the platform at its API server."""

    def __init__(self, env: Environment, home: Path | None = None):
        super().__init__(env)
        self._home = home or Path.home() / ".minikube"
        self._ip = ""

    @property
    def name(self) -> str:
        return "minikube"

    @property
    def provisioner(self) -> str:
        return "kubernetes"

    def start(self) -> Result:
        cmd = Command("minikube", "start")
        if self.env.get("minikubedriver"):
            cmd = cmd.with_args("--vm-driver", "{{.minikubedriver}}")
        res = cmd.with_timeout(20 * 60).run(self.env)
        if not res.ok:
            return res

        res = Command("minikube", "ip").run(self.env)
        if res.ok:
            self._ip = res.stdout_text.strip()
            logger.info("minikube is up at %s", self._ip)
        return res

    def delete(self) -> Result:
        return Command("minikube", "delete").run(self.env)

    def update_params(self) -> list[str]:
        return [
            "--addr", f"https://{self._ip}:{_API_PORT}",
            "--cacert", str(self._home / "ca.crt"),
            "--clientcert", str(self._home / "apiserver.crt"),
            "--clientkey", str(self._home / "apiserver.key"),
        ]
