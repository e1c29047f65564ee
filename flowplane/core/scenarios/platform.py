"""
Platform scenario — install a platform, provision it, deploy apps.

The flows below form one fixed sequence. Variables passed between
them (producer → consumer):

    platformimages      platforms-to-install → platform-add
    installerconfig     installer-config     → installer
    installercompose    installer-compose    → installer
    targetaddr          installer            → target
    adminuser/password  installer            → login, quota
    nodeopts            installer            → pool-add
    installernodes      installer            → remove-install-nodes
    team                team                 → pool-add, example-apps
    poolnames           pool-add             → example-apps
    nodeaddrs           pool-add             → pool-add (rollback)
    platforms           platform-add         → example-apps

Each producer declares ``provides``, so re-running with a populated
Environment skips straight to the missing steps.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.shell.command import Command
from flowplane.core.engine.checks import FlowContext
from flowplane.core.models.flow import Flow
from flowplane.core.models.result import Result, matches
from flowplane.core.models.scenario import ScenarioConfig
from flowplane.core.services import output_parsing

logger = logging.getLogger(__name__)

TARGET_NAME = "integration-target"
TEAM_NAME = "integration-team"
API_IMAGE = "tsuru/api:v1"
API_IMAGE_LATEST = "tsuru/api:latest"

INSTALL_TIMEOUT = 60 * 60
PLATFORM_TIMEOUT = 15 * 60
READY_TIMEOUT = 60
APP_RESPONSE_TIMEOUT = 15 * 60


def installer_config(host_count: int) -> dict:
    """Installer settings: one app host per provisioner."""
    return {
        "driver": {
            "name": "virtualbox",
            "options": {
                "virtualbox-cpu-count": 2,
                "virtualbox-memory": 2048,
            },
        },
        "docker-flags": ["experimental"],
        "hosts": {"apps": {"size": host_count}},
        "components": {"install-dashboard": False},
    }


def installer_name(ctx: FlowContext) -> str:
    return ctx.env.get("installername") or "tsuru"


def _temp_path(prefix: str) -> str:
    fd, path = tempfile.mkstemp(prefix=prefix)
    os.close(fd)
    return path


def _rotate(ctx: FlowContext, name: str) -> None:
    """Move the first value of ``name`` to the end."""
    values = ctx.env.all(name)
    if values:
        ctx.env.set(name, *(values[1:] + values[:1]))


def _platform_name(image: str) -> str:
    return "iplat-" + image.rsplit("/", 1)[-1]


class PlatformScenario:
    """Builds the ordered flow list for one run.

    Args:
        config: Scenario settings (CLI name, provisioners, images).
        cluster_managers: Extra cluster backends to turn into pools.
    """

    def __init__(self, config: ScenarioConfig, cluster_managers: list[ClusterManager] | None = None):
        self.config = config
        self.cluster_managers = list(cluster_managers or [])
        self.cli = Command(config.cli)

    def flows(self) -> list[Flow]:
        return [
            self.platforms_to_install(),
            self.installer_config(),
            self.installer_compose(),
            self.installer(),
            self.target(),
            self.login(),
            self.remove_install_nodes(),
            self.quota(),
            self.team(),
            self.pool_add(),
            self.platform_add(),
            self.example_apps(),
        ]

    def tool(self, *args: str) -> Command:
        return self.cli.with_args(*args)

    # ── Installation ────────────────────────────────────────────

    def platforms_to_install(self) -> Flow:
        images = list(self.config.platform_images)

        def forward(ctx: FlowContext) -> None:
            for image in images:
                ctx.env.add("platformimages", image)

        return Flow(name="platforms-to-install", provides=("platformimages",), forward=forward)

    def installer_config(self) -> Flow:
        settings = installer_config(len(self.config.provisioners))

        def forward(ctx: FlowContext) -> None:
            path = _temp_path("installer-config")
            Path(path).write_text(yaml.safe_dump(settings, sort_keys=False), encoding="utf-8")
            ctx.env.set("installerconfig", path)

        def backward(ctx: FlowContext) -> None:
            ctx.check(ctx.run(Command("rm", "{{.installerconfig}}")))

        return Flow(name="installer-config", provides=("installerconfig",),
                    forward=forward, backward=backward)

    def installer_compose(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            compose_path = _temp_path("installer-compose")
            config_path = _temp_path("installer-config")
            try:
                ctx.require(ctx.run(self.tool("install-config-init", config_path, compose_path)))
            finally:
                ctx.check(ctx.run(Command("rm", config_path)))
            compose = Path(compose_path).read_text(encoding="utf-8")
            compose = compose.replace(API_IMAGE, API_IMAGE_LATEST, 1)
            Path(compose_path).write_text(compose, encoding="utf-8")
            ctx.env.set("installercompose", compose_path)

        def backward(ctx: FlowContext) -> None:
            ctx.check(ctx.run(Command("rm", "{{.installercompose}}")))

        return Flow(name="installer-compose", provides=("installercompose",),
                    forward=forward, backward=backward)

    def installer(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            res = ctx.require(ctx.run(
                self.tool("install-create", "--config", "{{.installerconfig}}",
                          "--compose", "{{.installercompose}}").with_timeout(INSTALL_TIMEOUT)
            ))
            info = output_parsing.parse_install_output(res.stdout_text)
            ctx.require_true(bool(info.target_address), f"no target address in installer output\n{res}")
            ctx.env.set("targetaddr", info.target_address)

            certs = Path.home() / ".tsuru" / "installs" / installer_name(ctx) / "certs"
            for url in info.node_urls:
                ctx.env.add(
                    "nodeopts",
                    f"--register address={url} --cacert {certs}/ca.pem "
                    f"--clientcert {certs}/cert.pem --clientkey {certs}/key.pem",
                )
                ctx.env.add("installernodes", url)
            ctx.require_true(bool(info.username and info.password),
                             f"no admin credentials in installer output\n{res}")
            ctx.env.set("adminuser", info.username)
            ctx.env.set("adminpassword", info.password)

        def backward(ctx: FlowContext) -> None:
            ctx.check(ctx.run(self.tool("install-remove", "--config", "{{.installerconfig}}", "-y")))

        return Flow(name="installer", provides=("targetaddr",),
                    requires=("installerconfig", "installercompose"),
                    forward=forward, backward=backward)

    # ── Client setup ────────────────────────────────────────────

    def target(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("target-add", TARGET_NAME, "{{.targetaddr}}")))
            res = ctx.run(self.tool("target-list"))
            ctx.require(res, matches(stdout=rf"\s+{TARGET_NAME} .*"))
            ctx.require(ctx.run(self.tool("target-set", TARGET_NAME)))

        return Flow(name="target", requires=("targetaddr",), forward=forward)

    def login(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("login", "{{.adminuser}}").with_input("{{.adminpassword}}")))

        return Flow(name="login", requires=("adminuser", "adminpassword"), forward=forward)

    def remove_install_nodes(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("node-remove", "-y", "--no-rebalance", "{{.node}}")))

        return Flow(name="remove-install-nodes", matrix={"node": "installernodes"}, forward=forward)

    def quota(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("user-quota-change", "{{.adminuser}}", "100")))
            res = ctx.run(self.tool("user-quota-view", "{{.adminuser}}"))
            ctx.require(res, matches(stdout=r"(?s)Apps usage.*/100"))

        return Flow(name="quota", requires=("adminuser",), forward=forward)

    def team(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("team-create", TEAM_NAME)))
            ctx.env.set("team", TEAM_NAME)

        def backward(ctx: FlowContext) -> None:
            ctx.check(ctx.run(self.tool("team-remove", "-y", TEAM_NAME)))

        return Flow(name="team", provides=("team",), forward=forward, backward=backward)

    # ── Pools ───────────────────────────────────────────────────

    def pool_add(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            for provisioner in self.config.provisioners:
                self._provisioner_pool(ctx, provisioner)
            for cluster in self.cluster_managers:
                self._cluster_pool(ctx, cluster)

        def backward(ctx: FlowContext) -> None:
            for cluster in self.cluster_managers:
                ctx.check(ctx.run(self.tool("cluster-remove", cluster.cluster_name)))
                ctx.check(cluster.delete())
                ctx.check(ctx.run(self.tool("pool-remove", "-y", cluster.pool_name)))
            for node in ctx.env.all("nodeaddrs"):
                ctx.check(ctx.run(self.tool("node-remove", "-y", "--no-rebalance", node)))
            for provisioner in self.config.provisioners:
                ctx.check(ctx.run(self.tool("pool-remove", "-y", f"ipool-{provisioner}")))

        return Flow(name="pool-add", provides=("poolnames",), requires=("team", "nodeopts"),
                    forward=forward, backward=backward)

    def _provisioner_pool(self, ctx: FlowContext, provisioner: str) -> None:
        pool = f"ipool-{provisioner}"
        ctx.require(ctx.run(self.tool("pool-add", "--provisioner", provisioner, pool)))
        ctx.env.add("poolnames", pool)
        ctx.require(ctx.run(self.tool("pool-constraint-set", pool, "team", "{{.team}}")))
        ctx.require(ctx.run(self.tool("node-add", "{{.nodeopts}}", f"pool={pool}")))
        res = ctx.require(ctx.run(self.tool("event-list")))
        _rotate(ctx, "nodeopts")

        address = output_parsing.parse_created_node(res.stdout_text)
        ctx.require_true(address is not None, f"no node.create event found\n{res}")
        ctx.env.add("nodeaddrs", address)

        last: list[Result] = []

        def ready() -> bool:
            last[:] = [ctx.run(self.tool("node-list"))]
            return output_parsing.node_ready(last[0].stdout_text, address)

        ctx.wait_for(READY_TIMEOUT, ready, lambda: f"node {address} not ready after 1 minute\n{last[0]}")

    def _cluster_pool(self, ctx: FlowContext, cluster: ClusterManager) -> None:
        pool = cluster.pool_name
        ctx.require(ctx.run(self.tool("pool-add", "--provisioner", cluster.provisioner, pool)))
        ctx.env.add("poolnames", pool)
        ctx.require(ctx.run(self.tool("pool-constraint-set", pool, "team", "{{.team}}")))
        ctx.require(cluster.start())
        ctx.require(ctx.run(self.tool(
            "cluster-update", cluster.cluster_name, cluster.provisioner, "--pool", pool,
            *cluster.update_params(),
        )))
        ctx.run(self.tool("cluster-list"))

        node_ips: list[str] = []

        def registered() -> bool:
            res = ctx.run(self.tool("node-list", "-f", f"tsuru.io/cluster={cluster.cluster_name}"))
            if "Ready" not in res.stdout_text:
                return False
            node_ips[:] = output_parsing.parse_table_addresses(res.stdout_text)
            return True

        ctx.wait_for(READY_TIMEOUT, registered, f"nodes of {cluster.name} not ready after 1 minute")
        for ip in node_ips:
            ctx.require(ctx.run(self.tool("node-update", ip, f"pool={pool}")))

        res = ctx.require(ctx.run(self.tool("event-list")))
        _rotate(ctx, "nodeopts")
        for ip in node_ips:
            ctx.require_true(output_parsing.node_updated(res.stdout_text, ip),
                             f"no node.update event for {ip}")

        def all_ready() -> bool:
            listing = ctx.run(self.tool("node-list")).stdout_text
            return all(output_parsing.node_ready(listing, ip, "Ready") for ip in node_ips)

        ctx.wait_for(READY_TIMEOUT, all_ready, f"nodes of {cluster.name} not ready after 1 minute")

    # ── Platforms and apps ──────────────────────────────────────

    def platform_add(self) -> Flow:
        def forward(ctx: FlowContext) -> None:
            name = _platform_name(ctx.env.get("platimg"))
            ctx.require(ctx.run(
                self.tool("platform-add", name, "-i", "{{.platimg}}").with_timeout(PLATFORM_TIMEOUT)
            ))
            ctx.env.add("platforms", name)
            res = ctx.require(ctx.run(self.tool("platform-list")))
            ctx.require(res, matches(stdout=rf"(?s).*- {name}.*"))

        def backward(ctx: FlowContext) -> None:
            name = _platform_name(ctx.env.get("platimg"))
            ctx.check(ctx.run(self.tool("platform-remove", "-y", name)))

        return Flow(name="platform-add", provides=("platforms",),
                    matrix={"platimg": "platformimages"}, parallel=True,
                    forward=forward, backward=backward)

    def example_apps(self) -> Flow:
        app = "iapp-{{.plat}}-{{.pool}}"

        def forward(ctx: FlowContext) -> None:
            ctx.require(ctx.run(self.tool("app-create", app, "{{.plat}}", "-t", "{{.team}}", "-o", "{{.pool}}")))
            res = ctx.require(ctx.run(self.tool("app-info", "-a", app)))
            platform = output_parsing.parse_field(res.stdout_text, "Platform")
            ctx.require_true(platform is not None, f"no platform in app-info\n{res}")
            lang = platform.replace("iplat-", "")
            ctx.require(ctx.run(self.tool("app-deploy", "-a", app, f"{{{{.examplesdir}}}}/{lang}/")))

            info: list[Result] = []

            def started() -> bool:
                info[:] = [ctx.require(ctx.run(self.tool("app-info", "-a", app)))]
                return "started" in info[0].stdout_text

            ctx.wait_for(READY_TIMEOUT, started, "app not ready after 1 minute")
            address = output_parsing.parse_field(info[0].stdout_text, "Address")
            ctx.require_true(address is not None, f"no address in app-info\n{info[0]}")

            curl = Command("curl", "-sSf", f"http://{address}")
            ctx.wait_for(APP_RESPONSE_TIMEOUT, lambda: ctx.run(curl).ok,
                         f"app at {address} never answered")

        def backward(ctx: FlowContext) -> None:
            ctx.check(ctx.run(self.tool("app-remove", "-y", "-a", app)))

        return Flow(name="example-apps", requires=("team",),
                    matrix={"pool": "poolnames", "plat": "platforms"}, parallel=True,
                    forward=forward, backward=backward)
