"""
Domain models for flows, results and scenario configuration.

    from flowplane.core.models import Flow, Result, ScenarioConfig
"""

from flowplane.core.models.flow import ExecutedFlow, Flow, FlowStatus
from flowplane.core.models.result import Expected, Result, ResultOk, matches, ok
from flowplane.core.models.scenario import ScenarioConfig

__all__ = [
    "ExecutedFlow",
    "Expected",
    "Flow",
    "FlowStatus",
    "Result",
    "ResultOk",
    "ScenarioConfig",
    "matches",
    "ok",
]
