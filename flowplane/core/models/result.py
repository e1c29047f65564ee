"""
Result and expectation models — the command execution contract.

A Result is what one external command invocation produced. The
executor NEVER raises for a failing command: non-zero exits, timeouts
and spawn errors are all captured here, and flows decide what matters
by checking the Result against an expectation.
"""

from __future__ import annotations

import re
from typing import Protocol

from pydantic import BaseModel, Field

# Exit code reported when the process was killed at its deadline or
# could not be started at all.
SENTINEL_EXIT_CODE = -1


class Result(BaseModel):
    """Captured outcome of one external command."""

    command: list[str] = Field(default_factory=list)
    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0
    timed_out: bool = False
    error: str | None = None
    duration_ms: int = 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        """Whether the command exited with code 0 before its deadline."""
        return self.exit_code == 0 and not self.timed_out and self.error is None

    @classmethod
    def timeout(cls, command: list[str], stdout: bytes = b"", stderr: bytes = b"",
                duration_ms: int = 0) -> Result:
        return cls(
            command=command,
            stdout=stdout,
            stderr=stderr,
            exit_code=SENTINEL_EXIT_CODE,
            timed_out=True,
            duration_ms=duration_ms,
        )

    @classmethod
    def spawn_failure(cls, command: list[str], error: str) -> Result:
        return cls(command=command, exit_code=SENTINEL_EXIT_CODE, error=error)

    def __str__(self) -> str:
        lines = [
            f"command: {' '.join(self.command)}",
            f"exit code: {self.exit_code}",
        ]
        if self.timed_out:
            lines.append("timed out: true")
        if self.error:
            lines.append(f"error: {self.error}")
        lines.append(f"stdout: {self.stdout_text.strip()}")
        lines.append(f"stderr: {self.stderr_text.strip()}")
        return "\n".join(lines)


class Expectation(Protocol):
    """Anything that can judge a Result."""

    def verify(self, result: Result) -> str | None:
        """Return None when satisfied, else a failure description."""


class ResultOk:
    """Expect exit code 0."""

    def verify(self, result: Result) -> str | None:
        if result.ok:
            return None
        return f"expected successful command\n{result}"

    def __repr__(self) -> str:
        return "ok()"


class Expected:
    """Expect output matching regular expressions and a given exit code.

    Patterns are applied with ``re.search``; ``None`` means "don't care".
    """

    def __init__(
        self,
        stdout: str | None = None,
        stderr: str | None = None,
        exit_code: int | None = 0,
    ):
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code

    def verify(self, result: Result) -> str | None:
        problems: list[str] = []
        if self.exit_code is not None and result.exit_code != self.exit_code:
            problems.append(
                f"exit code {result.exit_code} != expected {self.exit_code}"
            )
        if self.stdout is not None and not re.search(self.stdout, result.stdout_text):
            problems.append(f"stdout does not match {self.stdout!r}")
        if self.stderr is not None and not re.search(self.stderr, result.stderr_text):
            problems.append(f"stderr does not match {self.stderr!r}")
        if not problems:
            return None
        return "; ".join(problems) + f"\n{result}"

    def __repr__(self) -> str:
        return (
            f"Expected(stdout={self.stdout!r}, stderr={self.stderr!r}, "
            f"exit_code={self.exit_code!r})"
        )


def ok() -> ResultOk:
    return ResultOk()


def matches(stdout: str | None = None, stderr: str | None = None,
            exit_code: int | None = 0) -> Expected:
    return Expected(stdout=stdout, stderr=stderr, exit_code=exit_code)
