"""
Environment — the shared, multi-valued variable store of a run.

Every flow of a scenario reads and writes the same Environment. Each
variable holds an ordered list of strings, not a scalar: ``get``
returns the first value, ``all`` the full list.

Templates use ``{{.name}}`` placeholders. Resolution is plain text
substitution of ``get(name)``; unknown names resolve to ``""`` and the
fault surfaces later, when a check looks at the command result.

Parallel matrix bindings see the store through a ``ScopedEnvironment``:
reads consult the binding's own parameters first, writes go straight
to the shared store.
"""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Iterable, Mapping

# Prefix for variables imported from the process environment.
ENV_PREFIX = "FLOWPLANE_"

_PLACEHOLDER = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def is_placeholder(template: str) -> bool:
    """Whether a string is exactly one ``{{.name}}`` token."""
    return _PLACEHOLDER.fullmatch(template.strip()) is not None


class Environment:
    """Thread-safe mapping of variable name → ordered list of values."""

    def __init__(self, initial: Mapping[str, Iterable[str]] | None = None):
        self._data: dict[str, list[str]] = {}
        self._lock = threading.Lock()
        if initial:
            for name, values in initial.items():
                self.set(name, *values)

    @classmethod
    def from_os_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> Environment:
        """Build an Environment from ``PREFIX_NAME=value`` variables.

        Every value is split on commas: ``FLOWPLANE_CLUSTERS=gce,minikube``
        becomes ``clusters`` with two values, and ``get`` on a variable set
        to ``a,b`` returns ``a``. Scalars that contain commas belong under
        ``vars`` in scenario.yml. Empty items are dropped.
        """
        environ = os.environ if environ is None else environ
        env = cls()
        for key, raw in sorted(environ.items()):
            if not key.startswith(prefix) or key == prefix:
                continue
            name = key[len(prefix):].lower()
            values = [v.strip() for v in raw.split(",") if v.strip()]
            env.set(name, *values)
        return env

    # ── Reads ───────────────────────────────────────────────────

    def get(self, name: str) -> str:
        with self._lock:
            values = self._data.get(name)
            return values[0] if values else ""

    def all(self, name: str) -> list[str]:
        with self._lock:
            return list(self._data.get(name, ()))

    def has(self, name: str) -> bool:
        with self._lock:
            return bool(self._data.get(name))

    def names(self) -> list[str]:
        with self._lock:
            return sorted(n for n, v in self._data.items() if v)

    def snapshot(self) -> dict[str, list[str]]:
        """Copy of every populated variable."""
        with self._lock:
            return {n: list(v) for n, v in self._data.items() if v}

    # ── Writes ──────────────────────────────────────────────────

    def set(self, name: str, *values: str) -> None:
        """Replace the values of ``name``."""
        with self._lock:
            self._data[name] = [str(v) for v in values]

    def add(self, name: str, *values: str) -> None:
        """Append values to ``name``, creating it when absent."""
        with self._lock:
            self._data.setdefault(name, []).extend(str(v) for v in values)

    def unset(self, name: str) -> None:
        with self._lock:
            self._data.pop(name, None)

    # ── Templates ───────────────────────────────────────────────

    def resolve(self, template: str) -> str:
        """Substitute every ``{{.name}}`` token with ``get(name)``."""
        return _PLACEHOLDER.sub(lambda m: self.get(m.group(1)), template)

    def scoped(self, bindings: Mapping[str, str]) -> ScopedEnvironment:
        """View of this store with ``bindings`` layered on top for reads."""
        return ScopedEnvironment(self, bindings)

    def __repr__(self) -> str:
        return f"<Environment vars={self.names()!r}>"


class ScopedEnvironment(Environment):
    """An Environment view that adds per-execution parameters.

    Local parameters shadow shared variables of the same name for
    ``get``/``all``/``has``/``resolve``. All mutation is delegated to the
    shared store, so values appended from concurrent bindings land in
    one place.
    """

    def __init__(self, shared: Environment, bindings: Mapping[str, str]):
        # No local store; everything but the bindings lives in ``shared``.
        self._shared = shared
        self._bindings = dict(bindings)

    @property
    def shared(self) -> Environment:
        return self._shared

    @property
    def bindings(self) -> dict[str, str]:
        return dict(self._bindings)

    def get(self, name: str) -> str:
        if name in self._bindings:
            return self._bindings[name]
        return self._shared.get(name)

    def all(self, name: str) -> list[str]:
        if name in self._bindings:
            return [self._bindings[name]]
        return self._shared.all(name)

    def has(self, name: str) -> bool:
        if name in self._bindings:
            return True
        return self._shared.has(name)

    def names(self) -> list[str]:
        return sorted(set(self._shared.names()) | set(self._bindings))

    def snapshot(self) -> dict[str, list[str]]:
        data = self._shared.snapshot()
        data.update({n: [v] for n, v in self._bindings.items()})
        return data

    def set(self, name: str, *values: str) -> None:
        self._shared.set(name, *values)

    def add(self, name: str, *values: str) -> None:
        self._shared.add(name, *values)

    def unset(self, name: str) -> None:
        self._shared.unset(name)

    def scoped(self, bindings: Mapping[str, str]) -> ScopedEnvironment:
        merged = dict(self._bindings)
        merged.update(bindings)
        return ScopedEnvironment(self._shared, merged)

    def __repr__(self) -> str:
        return f"<ScopedEnvironment bindings={self._bindings!r}>"
