"""
Runner — the scenario execution loop.

Flows run one after another in their declared order. For each flow:

    provides satisfied? → skip
    expand matrix → run forward bindings (serial or parallel)
    → record as executed → stop on failure

Whatever happens, the ``finally`` block unwinds every executed flow in
reverse order, calling its backward action once per binding that ran
forward (last binding first). Teardown is single-threaded and best-effort: a failing
rollback is recorded and the unwind continues.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime

from flowplane.core.engine.checks import CheckFailure, FailureLog, FlowContext, FlowFailure
from flowplane.core.engine.matrix import expand_matrix, matrix_size
from flowplane.core.environment import Environment
from flowplane.core.models.flow import Action, ExecutedFlow, Flow, FlowStatus

logger = logging.getLogger(__name__)

FORWARD = "forward"
BACKWARD = "backward"


@dataclass
class FlowOutcome:
    """How one flow ended in a run."""

    name: str
    status: FlowStatus
    bindings: int = 0
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "bindings": self.bindings,
            "duration_ms": self.duration_ms,
        }


@dataclass
class PlanEntry:
    """Dry-run view of a flow against the current Environment."""

    name: str
    skip: bool
    bindings: int
    parallel: bool

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "skip": self.skip,
            "bindings": self.bindings,
            "parallel": self.parallel,
        }


@dataclass
class RunReport:
    """Result of one scenario run."""

    run_id: str = ""
    outcomes: list[FlowOutcome] = field(default_factory=list)
    failure_log: FailureLog = field(default_factory=FailureLog)
    rolled_back: list[str] = field(default_factory=list)
    aborted_by: str | None = None

    @property
    def failures(self) -> list[CheckFailure]:
        return self.failure_log.items(FORWARD)

    @property
    def rollback_failures(self) -> list[CheckFailure]:
        return self.failure_log.items(BACKWARD)

    @property
    def executed(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status != FlowStatus.SKIPPED]

    @property
    def skipped(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status == FlowStatus.SKIPPED]

    @property
    def ok(self) -> bool:
        return self.aborted_by is None and len(self.failure_log) == 0

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "aborted_by": self.aborted_by,
            "flows": [o.to_dict() for o in self.outcomes],
            "failures": [f.to_dict() for f in self.failures],
            "rolled_back": list(self.rolled_back),
            "rollback_failures": [f.to_dict() for f in self.rollback_failures],
        }


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"


class Runner:
    """Executes a fixed flow sequence with reverse-order teardown.

    A Runner owns the executed-flow log of the run in progress; it is
    reset at the start of every ``run``. Use one Runner per thread.

    Args:
        flows: The static, ordered flow sequence.
        max_workers: Upper bound on concurrent bindings of a parallel
            flow (None = one worker per binding).
    """

    def __init__(self, flows: list[Flow], max_workers: int | None = None):
        self._flows = list(flows)
        self._max_workers = max_workers
        self._executed: list[ExecutedFlow] = []

    @property
    def flows(self) -> list[Flow]:
        return list(self._flows)

    @property
    def executed(self) -> list[ExecutedFlow]:
        """Flows recorded as executed by the last (or current) run."""
        return list(self._executed)

    def plan(self, env: Environment) -> list[PlanEntry]:
        """Skip decisions and matrix sizes against ``env``, without running."""
        return [
            PlanEntry(
                name=flow.name,
                skip=flow.is_satisfied(env),
                bindings=matrix_size(flow.matrix, env),
                parallel=flow.parallel,
            )
            for flow in self._flows
        ]

    def run(self, env: Environment, run_id: str | None = None) -> RunReport:
        """Run every flow, then unwind the executed ones in reverse."""
        report = RunReport(run_id=run_id or generate_run_id())
        self._executed = []
        logger.info("Run %s: %d flows", report.run_id, len(self._flows))

        try:
            for flow in self._flows:
                if flow.is_satisfied(env):
                    logger.info("⊘ %s (provides %s already set)", flow.name, ", ".join(flow.provides))
                    report.outcomes.append(FlowOutcome(flow.name, FlowStatus.SKIPPED))
                    continue

                record = self._forward(flow, env, report)
                report.outcomes.append(
                    FlowOutcome(
                        flow.name,
                        record.status,
                        bindings=len(record.bindings),
                        duration_ms=record.duration_ms,
                    )
                )
                if record.status == FlowStatus.FAILED:
                    report.aborted_by = flow.name
                    logger.error("✗ %s failed, aborting run", flow.name)
                    break
                logger.info("✓ %s (%dms)", flow.name, record.duration_ms)
        finally:
            self._rollback(env, report)

        logger.info("Run %s finished: %s", report.run_id, report.status)
        return report

    # ── Forward ─────────────────────────────────────────────────

    def _forward(self, flow: Flow, env: Environment, report: RunReport) -> ExecutedFlow:
        bindings = expand_matrix(flow.matrix, env)
        record = ExecutedFlow(flow=flow)
        logger.info("→ %s (%d binding(s)%s)", flow.name, len(bindings),
                    ", parallel" if flow.parallel else "")

        ok = False
        try:
            if flow.parallel and len(bindings) > 1:
                record.bindings = list(bindings)
                ok = self._forward_parallel(flow, bindings, env, report)
            else:
                ok = True
                for binding in bindings:
                    record.bindings.append(binding)
                    if not self._execute(flow, flow.forward, FORWARD, binding, env, report):
                        ok = False
                        break
        finally:
            record.finish(FlowStatus.COMPLETED if ok else FlowStatus.FAILED)
            self._executed.append(record)
        return record

    def _forward_parallel(
        self,
        flow: Flow,
        bindings: list[dict[str, str]],
        env: Environment,
        report: RunReport,
    ) -> bool:
        workers = len(bindings)
        if self._max_workers:
            workers = min(workers, self._max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"flow-{flow.name}") as pool:
            futures = [
                pool.submit(self._execute, flow, flow.forward, FORWARD, binding, env, report)
                for binding in bindings
            ]
            results = [future.result() for future in futures]
        return all(results)

    def _execute(
        self,
        flow: Flow,
        action: Action,
        phase: str,
        binding: dict[str, str],
        env: Environment,
        report: RunReport,
    ) -> bool:
        """Run one action for one binding. Never raises for action errors."""
        ctx = FlowContext(flow.name, phase, env.scoped(binding), report.failure_log)
        try:
            action(ctx)
        except FlowFailure:
            return False
        except Exception as e:
            logger.exception("[%s/%s] unexpected error", flow.name, phase)
            report.failure_log.append(
                CheckFailure(
                    flow=flow.name,
                    phase=phase,
                    message=f"Unexpected error: {e}",
                    fatal=True,
                    binding=dict(binding),
                )
            )
            return False
        return True

    # ── Teardown ────────────────────────────────────────────────

    def _rollback(self, env: Environment, report: RunReport) -> None:
        for record in reversed(self._executed):
            flow = record.flow
            if flow.backward is None or not record.bindings:
                continue
            logger.info("↩ %s (%d binding(s))", flow.name, len(record.bindings))
            for binding in reversed(record.bindings):
                if not self._execute(flow, flow.backward, BACKWARD, binding, env, report):
                    logger.warning("Rollback of %s failed, continuing", flow.name)
            report.rolled_back.append(flow.name)
