"""
Flow models — declarative units of work and their run-time records.

A Flow is defined once per scenario and never mutated. The Runner
keeps everything that changes during a run (status, bindings that
actually executed) in separate ExecutedFlow records.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flowplane.core.engine.checks import FlowContext
    from flowplane.core.environment import Environment

Action = Callable[["FlowContext"], None]


class FlowStatus(StrEnum):
    """Lifecycle of a flow within one run."""

    PENDING = "pending"
    SKIPPED = "skipped"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Flow:
    """A declared step of a scenario.

    Attributes:
        forward: Action performing the step.
        name: Identifier used in logs and reports.
        provides: Variables guaranteed set after a successful run. When
            all of them already hold a value, the flow is skipped.
        requires: Variables the flow reads. Informational only.
        matrix: Local parameter name → Environment variable; the flow
            runs once per combination of the variables' values.
        parallel: Run matrix combinations concurrently.
        backward: Optional action undoing the step at teardown.
    """

    forward: Action
    name: str = ""
    provides: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    matrix: Mapping[str, str] = field(default_factory=dict)
    parallel: bool = False
    backward: Action | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "provides", tuple(self.provides))
        object.__setattr__(self, "requires", tuple(self.requires))
        object.__setattr__(self, "matrix", dict(self.matrix))
        if not self.name:
            object.__setattr__(self, "name", getattr(self.forward, "__name__", "flow"))

    def is_satisfied(self, env: Environment) -> bool:
        """Whether every provided variable already has a value."""
        if not self.provides:
            return False
        return all(env.get(name) != "" for name in self.provides)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "provides": list(self.provides),
            "requires": list(self.requires),
            "matrix": dict(self.matrix),
            "parallel": self.parallel,
            "rollback": self.backward is not None,
        }


@dataclass
class ExecutedFlow:
    """Record of a flow whose forward action ran during this run."""

    flow: Flow
    bindings: list[dict[str, str]] = field(default_factory=list)
    status: FlowStatus = FlowStatus.RUNNING
    started: float = field(default_factory=time.monotonic)
    duration_ms: int = 0

    @property
    def name(self) -> str:
        return self.flow.name

    def finish(self, status: FlowStatus) -> None:
        self.status = status
        self.duration_ms = int((time.monotonic() - self.started) * 1000)
