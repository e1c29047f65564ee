"""
Configuration loader — reads scenario.yml into a ScenarioConfig and
builds the run's Environment.

Layers, later ones winning per variable:
    1. scenario.yml (optional; searched upward from cwd)
    2. FLOWPLANE_* process environment variables
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from flowplane.core.environment import ENV_PREFIX, Environment
from flowplane.core.models.scenario import ScenarioConfig

logger = logging.getLogger(__name__)

# Default config filename
SCENARIO_CONFIG_FILE = "scenario.yml"


class ConfigError(Exception):
    """Raised when scenario configuration is invalid or missing."""


def find_scenario_file(start_dir: Path | None = None) -> Path | None:
    """Search for scenario.yml starting from the given directory, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SCENARIO_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_scenario_config(path: Path | None = None) -> ScenarioConfig:
    """Load and validate scenario configuration.

    Args:
        path: Explicit path to scenario.yml. If None, searches upward;
            when nothing is found the defaults are used.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_scenario_file()

    if path is None:
        logger.debug("No %s found, using defaults", SCENARIO_CONFIG_FILE)
        return ScenarioConfig()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return ScenarioConfig()

    logger.debug("Loading scenario config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "scenario" key or be flat
    scenario_data = data.get("scenario", data)

    try:
        config = ScenarioConfig.model_validate(scenario_data)
    except Exception as e:
        raise ConfigError(f"Invalid scenario configuration in {path}: {e}") from e

    logger.info("Loaded scenario config from %s (enabled=%s)", path, config.enabled)
    return config


def build_environment(
    config: ScenarioConfig,
    environ: Mapping[str, str] | None = None,
) -> Environment:
    """Environment seeded from ``config`` then FLOWPLANE_* variables."""
    env = Environment(config.environment_vars())
    overrides = Environment.from_os_environ(os.environ if environ is None else environ, ENV_PREFIX)
    for name, values in overrides.snapshot().items():
        env.set(name, *values)
    # Logging settings share the prefix but are not scenario variables.
    for name in ("log_level", "log_file", "log_file_level"):
        env.unset(name)
    return env
