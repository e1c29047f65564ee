"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from flowplane.core.engine.checks import FailureLog, FlowContext
from flowplane.core.environment import Environment


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def env() -> Environment:
    """An empty Environment."""
    return Environment()


@pytest.fixture
def make_context(env: Environment):
    """Factory for a FlowContext bound to the ``env`` fixture."""

    def _make(flow: str = "test", phase: str = "forward", binding: dict | None = None,
              failures: FailureLog | None = None) -> FlowContext:
        log = failures if failures is not None else FailureLog()
        return FlowContext(flow, phase, env.scoped(binding or {}), log)

    return _make
