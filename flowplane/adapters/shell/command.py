"""
Command executor — run one external command from argument templates.

This is the single place where flows spawn processes. Arguments may
contain ``{{.name}}`` placeholders; they are resolved against the
Environment right before the process starts. The executor never raises
for a failing command: exit codes, timeouts and spawn errors all end up
in the returned Result.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from typing import Any

from flowplane.core.environment import Environment, is_placeholder
from flowplane.core.models.result import Result

logger = logging.getLogger(__name__)


class Command:
    """An immutable, reusable command template.

    Builders return new instances, so a base command can be shared::

        tsuru = Command("tsuru")
        tsuru.with_args("team-create", "{{.team}}").run(env)

    Params:
        name: Executable name or path (may itself be a template).
        args: Argument templates.
        timeout: Hard deadline in seconds (None = wait forever).
        input: Template fed to stdin after resolution.
        cwd: Working directory for the process.
        extra_env: Variables added to the inherited process environment.
    """

    def __init__(
        self,
        name: str,
        *args: str,
        timeout: float | None = None,
        input: str | None = None,
        cwd: str | None = None,
        extra_env: dict[str, str] | None = None,
    ):
        self.name = name
        self.args = tuple(args)
        self.timeout = timeout
        self.input = input
        self.cwd = cwd
        self.extra_env = dict(extra_env) if extra_env else None

    def _copy(self, **changes: Any) -> Command:
        params: dict[str, Any] = {
            "timeout": self.timeout,
            "input": self.input,
            "cwd": self.cwd,
            "extra_env": self.extra_env,
        }
        args = changes.pop("args", self.args)
        params.update(changes)
        return Command(self.name, *args, **params)

    def with_args(self, *args: str) -> Command:
        """Append arguments."""
        return self._copy(args=self.args + tuple(args))

    def with_timeout(self, seconds: float) -> Command:
        return self._copy(timeout=seconds)

    def with_input(self, template: str) -> Command:
        """Feed the resolved template to the process on stdin."""
        return self._copy(input=template)

    def __call__(self, *args: str) -> Command:
        return self.with_args(*args)

    def argv(self, env: Environment) -> list[str]:
        """Resolve the full argv against ``env``.

        An argument that is a single placeholder may expand to several
        tokens (``{{.nodeopts}}`` holds a list of flags). Placeholders
        embedded in other text are substituted in place, and literal
        arguments are passed through untouched.
        """
        argv = [env.resolve(self.name)]
        for template in self.args:
            resolved = env.resolve(template)
            if is_placeholder(template) and any(c.isspace() for c in resolved):
                argv.extend(_split_tokens(resolved))
            else:
                argv.append(resolved)
        return argv

    def run(self, env: Environment) -> Result:
        """Execute the command and capture its Result."""
        argv = self.argv(env)
        stdin = env.resolve(self.input).encode("utf-8") if self.input is not None else None

        process_env = None
        if self.extra_env:
            process_env = os.environ.copy()
            process_env.update(self.extra_env)

        logger.debug("Executing: %s (timeout=%s)", " ".join(argv), self.timeout)
        start = time.monotonic()

        try:
            completed = subprocess.run(
                argv,
                input=stdin,
                capture_output=True,
                timeout=self.timeout,
                cwd=self.cwd,
                env=process_env,
            )
        except subprocess.TimeoutExpired as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Command timed out after %ss: %s", self.timeout, " ".join(argv))
            return Result.timeout(
                argv,
                stdout=e.stdout or b"",
                stderr=e.stderr or b"",
                duration_ms=elapsed_ms,
            )
        except OSError as e:
            logger.warning("Command could not be started: %s (%s)", " ".join(argv), e)
            return Result.spawn_failure(argv, f"Command execution error: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        result = Result(
            command=argv,
            stdout=completed.stdout or b"",
            stderr=completed.stderr or b"",
            exit_code=completed.returncode,
            duration_ms=elapsed_ms,
        )
        logger.debug("→ exit %d in %dms", result.exit_code, elapsed_ms)
        return result

    def __repr__(self) -> str:
        return f"<Command {' '.join((self.name, *self.args))!r}>"

    def __str__(self) -> str:
        return " ".join((self.name, *self.args))


def _split_tokens(value: str) -> list[str]:
    """Shell-style split; a value with unbalanced quotes stays one token."""
    try:
        return shlex.split(value)
    except ValueError:
        logger.debug("Unbalanced quotes, passing %r as one argument", value)
        return [value]
