"""
Run use case — execute the platform scenario end to end.

Loads configuration, builds the Environment, selects cluster backends,
assembles the flow sequence and hands it to the Runner. The ``enabled``
variable gates everything: without it, nothing runs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from flowplane.adapters.base import ClusterManager
from flowplane.adapters.registry import select_cluster_managers
from flowplane.core.config.loader import ConfigError, build_environment, load_scenario_config
from flowplane.core.engine.runner import PlanEntry, RunReport, Runner
from flowplane.core.environment import Environment
from flowplane.core.models.flow import Flow
from flowplane.core.models.scenario import ScenarioConfig
from flowplane.core.scenarios.platform import PlatformScenario

logger = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class RunResult:
    """Result of running (or planning) the scenario."""

    report: RunReport | None = None
    plan: list[PlanEntry] | None = None
    config: ScenarioConfig | None = None
    clusters: list[str] | None = None
    enabled: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        if self.error:
            return False
        return self.report is None or self.report.ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["enabled"] = self.enabled
        result["clusters"] = list(self.clusters or [])
        if self.plan is not None:
            result["plan"] = [entry.to_dict() for entry in self.plan]
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def is_enabled(env: Environment) -> bool:
    """Whether the run-scoped ``enabled`` toggle is on."""
    return env.has("enabled") and env.get("enabled").lower() not in _FALSE_VALUES


def scenario_flows(
    config: ScenarioConfig,
    cluster_managers: list[ClusterManager] | None = None,
) -> list[Flow]:
    """The platform scenario's static flow sequence."""
    return PlatformScenario(config, cluster_managers).flows()


def run_scenario(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    dry_run: bool = False,
    env: Environment | None = None,
    flows: list[Flow] | None = None,
) -> RunResult:
    """Run the platform scenario.

    Args:
        config_path: Optional explicit path to scenario.yml.
        environ: Process environment to read FLOWPLANE_* from (default: os.environ).
        dry_run: If True, report the plan without executing anything.
        env: Pre-built Environment (skips config/environ loading).
        flows: Override the flow sequence (default: the platform scenario).

    Returns:
        RunResult with the run report, or the plan for a dry run.
    """
    result = RunResult()

    try:
        config = load_scenario_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config

    if env is None:
        env = build_environment(config, environ)

    result.enabled = is_enabled(env)
    if not result.enabled:
        logger.info("Scenario disabled (set 'enabled' to run it)")
        return result

    managers = select_cluster_managers(env)
    result.clusters = [m.name for m in managers]

    if flows is None:
        flows = scenario_flows(config, managers)
    runner = Runner(flows, max_workers=config.max_workers)

    if dry_run:
        result.plan = runner.plan(env)
        return result

    result.report = runner.run(env)
    return result
