"""
Matrix expansion — turn a flow's matrix into concrete bindings.

    {"pool": "poolnames", "plat": "platforms"}
        with poolnames=[p1, p2], platforms=[go, py]
    → [{pool: p1, plat: go}, {pool: p1, plat: py},
       {pool: p2, plat: go}, {pool: p2, plat: py}]

Order follows parameter declaration order (first parameter varies
slowest), each parameter's values in stored order.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping

from flowplane.core.environment import Environment


def expand_matrix(matrix: Mapping[str, str], env: Environment) -> list[dict[str, str]]:
    """Cartesian product of the referenced variables' values.

    No matrix → one empty binding. Any referenced variable without
    values → no bindings at all.
    """
    if not matrix:
        return [{}]

    params = list(matrix)
    sequences = [env.all(matrix[param]) for param in params]
    return [dict(zip(params, combo)) for combo in itertools.product(*sequences)]


def matrix_size(matrix: Mapping[str, str], env: Environment) -> int:
    """Number of bindings ``expand_matrix`` would produce."""
    size = 1
    for variable in matrix.values():
        size *= len(env.all(variable))
    return size
