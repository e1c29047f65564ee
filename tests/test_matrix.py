"""
Tests for matrix expansion.
"""

from flowplane.core.engine.matrix import expand_matrix, matrix_size
from flowplane.core.environment import Environment


class TestExpandMatrix:
    def test_no_matrix_single_empty_binding(self):
        assert expand_matrix({}, Environment()) == [{}]

    def test_single_parameter(self):
        env = Environment({"platforms": ["iplat-go", "iplat-python"]})
        assert expand_matrix({"plat": "platforms"}, env) == [
            {"plat": "iplat-go"},
            {"plat": "iplat-python"},
        ]

    def test_cartesian_product_order(self):
        env = Environment({"poolnames": ["p1", "p2"], "platforms": ["go", "py", "rb"]})
        bindings = expand_matrix({"pool": "poolnames", "plat": "platforms"}, env)
        assert len(bindings) == 6
        assert bindings[:3] == [
            {"pool": "p1", "plat": "go"},
            {"pool": "p1", "plat": "py"},
            {"pool": "p1", "plat": "rb"},
        ]
        assert bindings[3] == {"pool": "p2", "plat": "go"}

    def test_empty_variable_yields_nothing(self):
        env = Environment({"poolnames": ["p1"]})
        assert expand_matrix({"pool": "poolnames", "plat": "platforms"}, env) == []

    def test_size_matches_product(self):
        env = Environment({"a": ["1", "2"], "b": ["x", "y", "z"]})
        matrix = {"p": "a", "q": "b"}
        assert matrix_size(matrix, env) == 6 == len(expand_matrix(matrix, env))
        assert matrix_size({}, env) == 1
        assert matrix_size({"p": "missing"}, env) == 0
