"""
Tests for the command executor and the Result model.

Uses real, short-lived processes (sh, echo, cat, sleep).
"""

from pathlib import Path

from flowplane.adapters.shell.command import Command
from flowplane.core.environment import Environment
from flowplane.core.models.result import SENTINEL_EXIT_CODE, Expected, Result, matches, ok

# ── Argument resolution ──────────────────────────────────────────────


class TestArgv:
    def test_placeholders_resolved(self):
        env = Environment({"team": ["t1"]})
        cmd = Command("tsuru", "team-create", "{{.team}}")
        assert cmd.argv(env) == ["tsuru", "team-create", "t1"]

    def test_multi_token_value_split(self):
        env = Environment({"nodeopts": ["--register address=http://n1 --cacert /c/ca.pem"]})
        cmd = Command("tsuru", "node-add", "{{.nodeopts}}", "pool=p1")
        assert cmd.argv(env) == [
            "tsuru", "node-add", "--register", "address=http://n1",
            "--cacert", "/c/ca.pem", "pool=p1",
        ]

    def test_literal_with_spaces_not_split(self):
        cmd = Command("echo", "hello world")
        assert cmd.argv(Environment()) == ["echo", "hello world"]

    def test_embedded_placeholder_not_split(self):
        env = Environment({"examplesdir": ["/tmp/my examples"]})
        cmd = Command("tsuru", "app-deploy", "-a", "app", "{{.examplesdir}}/go/")
        assert cmd.argv(env) == ["tsuru", "app-deploy", "-a", "app", "/tmp/my examples/go/"]

    def test_unbalanced_quote_kept_whole(self):
        env = Environment({"user": ["o'brien smith"]})
        assert Command("echo", "{{.user}}").argv(env) == ["echo", "o'brien smith"]

    def test_unset_placeholder_is_empty_arg(self):
        cmd = Command("echo", "{{.missing}}")
        assert cmd.argv(Environment()) == ["echo", ""]

    def test_builders_do_not_mutate(self):
        base = Command("tsuru")
        derived = base.with_args("app-list").with_timeout(5).with_input("x")
        assert base.args == ()
        assert base.timeout is None
        assert derived.args == ("app-list",)
        assert derived.timeout == 5
        assert derived.input == "x"

    def test_call_appends_args(self):
        assert Command("tsuru")("a", "b").args == ("a", "b")


# ── Execution ────────────────────────────────────────────────────────


class TestRun:
    def test_captures_stdout(self):
        res = Command("echo", "{{.word}}").run(Environment({"word": ["hello"]}))
        assert res.ok
        assert res.exit_code == 0
        assert res.stdout_text.strip() == "hello"
        assert res.command == ["echo", "hello"]

    def test_unbalanced_quote_value_does_not_raise(self):
        env = Environment({"user": ["o'brien smith"]})
        result = Command("echo", "{{.user}}").run(env)
        assert result.ok
        assert result.stdout_text.strip() == "o'brien smith"

    def test_non_zero_exit_does_not_raise(self):
        res = Command("sh", "-c", "echo oops >&2; exit 3").run(Environment())
        assert not res.ok
        assert res.exit_code == 3
        assert "oops" in res.stderr_text

    def test_stdin_is_resolved(self):
        env = Environment({"password": ["s3cret"]})
        res = Command("cat").with_input("{{.password}}").run(env)
        assert res.ok
        assert res.stdout_text == "s3cret"

    def test_timeout_kills_process(self):
        res = Command("sleep", "5").with_timeout(0.2).run(Environment())
        assert res.timed_out
        assert res.exit_code == SENTINEL_EXIT_CODE
        assert not res.ok
        assert res.duration_ms < 5000

    def test_missing_executable(self):
        res = Command("definitely-not-a-real-binary-xyz").run(Environment())
        assert not res.ok
        assert res.exit_code == SENTINEL_EXIT_CODE
        assert "execution error" in (res.error or "")

    def test_cwd(self, tmp_path: Path):
        res = Command("pwd", cwd=str(tmp_path)).run(Environment())
        assert res.stdout_text.strip() == str(tmp_path.resolve())

    def test_extra_env(self):
        res = Command("sh", "-c", "echo $FLOWPLANE_TEST_VAR", extra_env={"FLOWPLANE_TEST_VAR": "v"}).run(
            Environment()
        )
        assert res.stdout_text.strip() == "v"


# ── Expectations ─────────────────────────────────────────────────────


class TestExpectations:
    def test_ok(self):
        assert ok().verify(Result(exit_code=0)) is None
        assert ok().verify(Result(exit_code=1)) is not None
        assert ok().verify(Result.timeout(["x"])) is not None

    def test_matches_stdout(self):
        res = Result(stdout=b"  integration-target http://x\n")
        assert matches(stdout=r"\s+integration-target .*").verify(res) is None
        assert matches(stdout=r"other").verify(res) is not None

    def test_matches_checks_exit_code(self):
        res = Result(stdout=b"Apps usage: 0/100", exit_code=2)
        problem = matches(stdout=r"(?s)Apps usage.*/100").verify(res)
        assert problem is not None
        assert "exit code 2" in problem

    def test_exit_code_dont_care(self):
        res = Result(stderr=b"not found", exit_code=1)
        assert Expected(stderr="not found", exit_code=None).verify(res) is None

    def test_str_includes_output(self):
        res = Result(command=["tsuru", "app-list"], stdout=b"out", stderr=b"err", exit_code=1)
        text = str(res)
        assert "tsuru app-list" in text
        assert "exit code: 1" in text
        assert "out" in text and "err" in text
