"""Flow engine — checks, matrix expansion and the Runner."""

from flowplane.core.engine.checks import CheckFailure, FlowContext, FlowFailure
from flowplane.core.engine.matrix import expand_matrix
from flowplane.core.engine.runner import RunReport, Runner

__all__ = [
    "CheckFailure",
    "FlowContext",
    "FlowFailure",
    "RunReport",
    "Runner",
    "expand_matrix",
]
