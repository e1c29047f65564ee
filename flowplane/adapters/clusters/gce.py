"""
GKE backend — a throwaway Kubernetes cluster on Google Cloud.

Driven through the ``gcloud`` CLI. Zone and project come from the
``gcezone`` and ``gceproject`` variables; credentials for the cluster
API are generated per run.
"""

from __future__ import annotations

import logging
import secrets
import uuid

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.shell.command import Command
from flowplane.core.environment import Environment
from flowplane.core.models.result import Result

logger = logging.getLogger(__name__)

_DEFAULT_ZONE = "us-central1-a"
_DEFAULT_MACHINE_TYPE = "n1-standard-4"
_ADMIN_USER = "admin"


class GceClusterManager(ClusterManager):
    """Create and remove a single-node GKE cluster."""

    def __init__(self, env: Environment):
        super().__init__(env)
        self._gcloud_name = f"integration-{uuid.uuid4().hex[:8]}"
        self._password = secrets.token_hex(16)
        self._address = ""

    @property
    def name(self) -> str:
        return "gce"

    @property
    def provisioner(self) -> str:
        return "kubernetes"

    @property
    def address(self) -> str:
        return self._address

    def _gcloud(self, *args: str) -> Command:
        zone = self.env.get("gcezone") or _DEFAULT_ZONE
        cmd = Command("gcloud", "container", "clusters", *args, "--zone", zone)
        if self.env.get("gceproject"):
            cmd = cmd.with_args("--project", "{{.gceproject}}")
        return cmd

    def start(self) -> Result:
        machine_type = self.env.get("gcemachinetype") or _DEFAULT_MACHINE_TYPE
        logger.info("Creating GKE cluster %s", self._gcloud_name)
        res = self._gcloud(
            "create", self._gcloud_name,
            "--num-nodes", "1",
            "--machine-type", machine_type,
            "--enable-legacy-authorization",
            "--username", _ADMIN_USER,
            "--password", self._password,
        ).with_timeout(30 * 60).run(self.env)
        if not res.ok:
            return res

        describe = self._gcloud(
            "describe", self._gcloud_name, "--format", "value(endpoint)",
        ).run(self.env)
        if describe.ok:
            self._address = f"https://{describe.stdout_text.strip()}"
        return describe

    def delete(self) -> Result:
        logger.info("Deleting GKE cluster %s", self._gcloud_name)
        return self._gcloud("delete", self._gcloud_name, "--async", "--quiet").run(self.env)

    def update_params(self) -> list[str]:
        return [
            "--addr", self._address,
            "--custom", f"username={_ADMIN_USER}",
            "--custom", f"password={self._password}",
        ]
