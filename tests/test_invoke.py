"""Tests for the invocation adapter, using the running interpreter as the backend."""

import os
import sys

import pytest

from verbkit.backends.invoke import Invocation, invoke
from verbkit.backends.policy import ToolCandidate
from verbkit.config import ExecutionConfig
from verbkit.errors import ExecutionFailed


def python_candidate(script, name="python"):
    """Candidate running ``python -c script <output> <extra args...>``."""

    def build(executable, invocation):
        return [executable, "-c", script, str(invocation.output_path), *invocation.extra_args]

    return ToolCandidate(name, build)


def listing(path):
    return sorted(os.listdir(path))


WRITE_OK = "import sys; open(sys.argv[1], 'w').write('ok')"
WRITE_THEN_FAIL = "import sys; open(sys.argv[1], 'w').write('partial'); sys.stderr.write('boom\\n'); sys.exit(3)"


class TestSuccess:
    def test_output_is_moved_into_place(self, workdir):
        before = listing(workdir)
        target = workdir / "result.txt"

        result = invoke(
            python_candidate(WRITE_OK),
            Invocation(verb="demo", output_path=target),
            executable=sys.executable,
        )

        assert result.exit_code == 0
        assert result.candidate == "python"
        assert result.produced_artifact_path == target
        assert result.duration_seconds is not None
        assert target.read_text() == "ok"
        assert listing(workdir) == sorted(before + ["result.txt"])

    def test_backend_sees_staged_name_with_original_suffix(self, workdir):
        script = "import sys, pathlib; p = pathlib.Path(sys.argv[1]); p.write_text(p.name)"
        target = workdir / "song.mp3"

        invoke(python_candidate(script), Invocation(verb="demo", output_path=target), executable=sys.executable)

        staged_name = target.read_text()
        assert staged_name != "song.mp3"
        assert staged_name.startswith(".")
        assert staged_name.endswith(".song.mp3")

    def test_stdout_can_become_the_artifact(self, workdir):
        target = workdir / "out.bin"
        script = "import sys; sys.stdout.write('from stdout')"

        invoke(
            python_candidate(script),
            Invocation(verb="demo", output_path=target, stdout_to_output=True),
            executable=sys.executable,
        )

        assert target.read_text() == "from stdout"
        assert listing(workdir) == ["out.bin"]

    def test_stdin_and_captured_stdout(self):
        script = "import sys; sys.stdout.write(sys.stdin.read().upper())"

        result = invoke(
            python_candidate(script),
            Invocation(verb="demo", stdin_data=b"hello", capture_stdout=True),
            executable=sys.executable,
        )

        assert result.stdout == b"HELLO"
        assert result.produced_artifact_path is None

    def test_arguments_are_passed_verbatim(self):
        script = "import sys; sys.stdout.write('|'.join(sys.argv[2:]))"
        hostile = ("a b", "; rm -rf /", "$(whoami)", "*")

        result = invoke(
            python_candidate(script),
            Invocation(verb="demo", extra_args=hostile, capture_stdout=True),
            executable=sys.executable,
        )

        assert result.stdout.decode() == "|".join(hostile)


class TestFailure:
    def test_nonzero_exit_raises_with_stderr_tail(self, workdir):
        with pytest.raises(ExecutionFailed) as excinfo:
            invoke(
                python_candidate(WRITE_THEN_FAIL),
                Invocation(verb="demo", output_path=workdir / "result.txt"),
                executable=sys.executable,
            )

        assert excinfo.value.returncode == 3
        assert excinfo.value.candidate == "python"
        assert "boom" in excinfo.value.stderr_tail
        assert excinfo.value.kind == "ExecutionFailed"

    def test_partial_output_never_survives(self, workdir):
        (workdir / "keep.txt").write_text("keep")
        before = listing(workdir)

        with pytest.raises(ExecutionFailed):
            invoke(
                python_candidate(WRITE_THEN_FAIL),
                Invocation(verb="demo", output_path=workdir / "result.txt"),
                executable=sys.executable,
            )

        assert listing(workdir) == before

    def test_failure_does_not_clobber_existing_target(self, workdir):
        target = workdir / "result.txt"
        target.write_text("previous")

        with pytest.raises(ExecutionFailed):
            invoke(
                python_candidate(WRITE_THEN_FAIL),
                Invocation(verb="demo", output_path=target),
                executable=sys.executable,
            )

        assert target.read_text() == "previous"
        assert listing(workdir) == ["result.txt"]

    def test_created_output_directory_is_removed_on_failure(self, workdir):
        script = "import sys, pathlib; d = pathlib.Path(sys.argv[1]); d.mkdir(); (d / 'x').write_text('x'); sys.exit(1)"

        with pytest.raises(ExecutionFailed):
            invoke(
                python_candidate(script),
                Invocation(verb="demo", output_path=workdir / "site", output_is_dir=True),
                executable=sys.executable,
            )

        assert listing(workdir) == []

    def test_clean_exit_without_output_is_a_failure(self, workdir):
        with pytest.raises(ExecutionFailed, match="produced no output") as excinfo:
            invoke(
                python_candidate("pass"),
                Invocation(verb="demo", output_path=workdir / "out.pdf"),
                executable=sys.executable,
            )

        assert excinfo.value.returncode == 0
        assert excinfo.value.kind == "ExecutionFailed"
        assert listing(workdir) == []

    def test_timeout_kills_the_child(self, workdir):
        script = "import time; time.sleep(30)"
        config = ExecutionConfig(terminate_grace_seconds=1.0)

        with pytest.raises(ExecutionFailed, match="timed out"):
            invoke(
                python_candidate(script),
                Invocation(verb="demo", output_path=workdir / "never.txt", timeout=0.5),
                executable=sys.executable,
                config=config,
            )

        assert listing(workdir) == []

    def test_missing_executable_is_an_execution_failure(self, workdir):
        with pytest.raises(ExecutionFailed, match="could not be started"):
            invoke(
                python_candidate(WRITE_OK, name="definitely-not-installed"),
                Invocation(verb="demo", output_path=workdir / "x.txt"),
                executable=str(workdir / "definitely-not-installed"),
            )

        assert listing(workdir) == []

    def test_stderr_capture_can_be_disabled(self):
        config = ExecutionConfig(capture_stderr=False)

        with pytest.raises(ExecutionFailed) as excinfo:
            invoke(
                python_candidate("import sys; sys.exit(2)"),
                Invocation(verb="demo"),
                executable=sys.executable,
                config=config,
            )

        assert excinfo.value.returncode == 2
        assert excinfo.value.stderr_tail == ""
