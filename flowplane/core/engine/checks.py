"""
Checks — the two severities of verification available to flow actions.

    require*  fatal: records the failure and raises FlowFailure, which
              aborts the current binding (and, in the forward phase,
              the run).
    check*    non-fatal: records the failure and returns False; the
              action keeps going. Teardown code uses these so every
              step is still attempted.

Failures are appended to a shared FailureLog, which is safe to use
from parallel bindings.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from flowplane.adapters.shell.command import Command
from flowplane.core.environment import ScopedEnvironment
from flowplane.core.models.result import Expectation, Result, ResultOk
from flowplane.core.reliability.retry import DEFAULT_INTERVAL, retry

logger = logging.getLogger(__name__)


class FlowFailure(Exception):
    """A fatal check failed; the current binding cannot continue."""

    def __init__(self, message: str, flow: str = "", phase: str = ""):
        super().__init__(message)
        self.message = message
        self.flow = flow
        self.phase = phase


@dataclass
class CheckFailure:
    """One failed verification, fatal or not."""

    flow: str
    phase: str                      # forward | backward
    message: str
    fatal: bool = False
    binding: dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict:
        return {
            "flow": self.flow,
            "phase": self.phase,
            "message": self.message,
            "fatal": self.fatal,
            "binding": self.binding,
            "timestamp": self.timestamp,
        }


class FailureLog:
    """Append-only, thread-safe list of CheckFailure entries."""

    def __init__(self) -> None:
        self._items: list[CheckFailure] = []
        self._lock = threading.Lock()

    def append(self, failure: CheckFailure) -> None:
        with self._lock:
            self._items.append(failure)

    def items(self, phase: str | None = None) -> list[CheckFailure]:
        with self._lock:
            if phase is None:
                return list(self._items)
            return [f for f in self._items if f.phase == phase]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class FlowContext:
    """What a flow action gets to work with.

    ``env`` is the binding-scoped view of the run's Environment, so
    ``{{.param}}`` templates resolve to this execution's matrix values.
    """

    def __init__(
        self,
        flow: str,
        phase: str,
        env: ScopedEnvironment,
        failures: FailureLog,
    ):
        self.flow = flow
        self.phase = phase
        self.env = env
        self._failures = failures
        self.failed = False

    @property
    def binding(self) -> Mapping[str, str]:
        return self.env.bindings

    # ── Helpers ─────────────────────────────────────────────────

    def run(self, command: Command) -> Result:
        """Run a command against this context's environment."""
        return command.run(self.env)

    def _record(self, message: str, fatal: bool) -> None:
        self.failed = True
        failure = CheckFailure(
            flow=self.flow,
            phase=self.phase,
            message=message,
            fatal=fatal,
            binding=dict(self.env.bindings),
        )
        self._failures.append(failure)
        log = logger.error if fatal else logger.warning
        log("[%s/%s] check failed: %s", self.flow, self.phase, (message.splitlines() or [""])[0])

    # ── Non-fatal ───────────────────────────────────────────────

    def check(self, result: Result, expectation: Expectation | None = None) -> bool:
        problem = (expectation or ResultOk()).verify(result)
        if problem is None:
            return True
        self._record(problem, fatal=False)
        return False

    def check_true(self, condition: bool, message: str) -> bool:
        if condition:
            return True
        self._record(message, fatal=False)
        return False

    # ── Fatal ───────────────────────────────────────────────────

    def require(self, result: Result, expectation: Expectation | None = None) -> Result:
        """Fail the binding unless ``result`` meets the expectation."""
        problem = (expectation or ResultOk()).verify(result)
        if problem is not None:
            self._fail(problem)
        return result

    def require_true(self, condition: bool, message: str) -> None:
        if not condition:
            self._fail(message)

    def wait_for(
        self,
        timeout: float,
        probe: Callable[[], bool],
        message: str | Callable[[], str],
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        """Poll ``probe``; a probe that never succeeds is a fatal failure.

        ``message`` may be a callable, evaluated only on timeout, so the
        failure can include the last observed output.
        """
        if not retry(timeout, probe, interval):
            self._fail(message() if callable(message) else message)

    def _fail(self, message: str) -> None:
        self._record(message, fatal=True)
        raise FlowFailure(message, flow=self.flow, phase=self.phase)
