"""Run one selected backend with an explicit argument vector."""

from __future__ import annotations

import ctypes
import logging
import os
import signal
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import IO, Any, Callable

from verbkit.backends.policy import ToolCandidate
from verbkit.config import ExecutionConfig
from verbkit.errors import ExecutionFailed
from verbkit.utils.paths import atomic_temp_path, remove_path

LOGGER = logging.getLogger(__name__)

_PR_SET_PDEATHSIG = 1


@dataclass(frozen=True, slots=True)
class Invocation:
    """One concrete request to run a backend.

    ``output_path`` names the final artifact. Single-file outputs are handed to
    the backend as a hidden staging path and only moved into place on success.
    """

    verb: str
    input_path: str | None = None
    output_path: Path | None = None
    extra_args: tuple[str, ...] = ()
    cwd: Path | None = None
    stdin_data: bytes | None = None
    capture_stdout: bool = False
    stdout_to_output: bool = False
    output_is_dir: bool = False
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of a successful backend run."""

    candidate: str
    exit_code: int
    duration_seconds: float | None = None
    produced_artifact_path: Path | None = None
    stdout: bytes | None = None


def _parent_death_hook(config: ExecutionConfig) -> Callable[[], None] | None:
    """Return a pre-exec hook that kills the child when the dispatcher dies (Linux only)."""

    if not config.bind_children_to_parent or not sys.platform.startswith("linux"):
        return None
    libc = ctypes.CDLL(None, use_errno=True)

    def _bind() -> None:
        libc.prctl(_PR_SET_PDEATHSIG, signal.SIGKILL)

    return _bind


def _terminate(process: subprocess.Popen[Any], grace_seconds: float, logger: logging.Logger) -> None:
    if process.poll() is not None:
        return
    logger.warning("invoke.terminating pid=%s", process.pid)
    process.terminate()
    try:
        process.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        logger.warning("invoke.killing pid=%s", process.pid)
        process.kill()
        process.wait()


def _read_tail(stream: IO[bytes] | None, max_lines: int) -> str:
    if stream is None or max_lines <= 0:
        return ""
    stream.seek(0)
    lines = stream.read().decode("utf-8", errors="replace").splitlines()
    return "\n".join(lines[-max_lines:])


def _run_process(
    argv: list[str],
    invocation: Invocation,
    *,
    stdout_target: IO[bytes] | int | None,
    stderr_target: IO[bytes] | None,
    config: ExecutionConfig,
    candidate_name: str,
    logger: logging.Logger,
) -> tuple[int, bytes | None]:
    try:
        process = subprocess.Popen(
            argv,
            cwd=invocation.cwd,
            stdin=subprocess.PIPE if invocation.stdin_data is not None else subprocess.DEVNULL,
            stdout=stdout_target,
            stderr=stderr_target,
            preexec_fn=_parent_death_hook(config),
        )
    except OSError as exc:
        raise ExecutionFailed(candidate_name, None, detail=f"{candidate_name} could not be started: {exc}") from exc

    try:
        stdout, _ = process.communicate(input=invocation.stdin_data, timeout=invocation.timeout)
    except subprocess.TimeoutExpired as exc:
        _terminate(process, config.terminate_grace_seconds, logger)
        raise ExecutionFailed(
            candidate_name,
            None,
            detail=f"{candidate_name} timed out after {invocation.timeout:g}s",
        ) from exc
    except BaseException:
        _terminate(process, config.terminate_grace_seconds, logger)
        raise
    return process.returncode, stdout


def invoke(
    candidate: ToolCandidate,
    invocation: Invocation,
    *,
    executable: str | None = None,
    config: ExecutionConfig | None = None,
    logger: logging.Logger | None = None,
) -> ExecutionResult:
    """Execute ``candidate`` for ``invocation`` and return its result.

    Raises ExecutionFailed on a non-zero exit, a timeout, or a launch error.
    Staged outputs, and output directories this call created, never survive a
    failure; the staged file is renamed onto ``output_path`` only on success.
    """

    effective_logger = logger or LOGGER
    settings = config or ExecutionConfig()
    target = invocation.output_path
    staged: Path | None = None
    created_dir = False
    if target is not None:
        if invocation.output_is_dir:
            created_dir = not target.exists()
        else:
            staged = atomic_temp_path(target)

    effective = invocation if staged is None else replace(invocation, output_path=staged)
    argv = candidate.build_argv(executable or candidate.name, effective)
    effective_logger.info(
        "invoke.start verb=%s candidate=%s argv=%s",
        invocation.verb,
        candidate.name,
        argv,
    )

    succeeded = False
    started = time.monotonic()
    stdout_file: IO[bytes] | None = None
    stderr_file: IO[bytes] | None = None
    try:
        stdout_target: IO[bytes] | int | None
        if effective.capture_stdout:
            stdout_target = subprocess.PIPE
        elif effective.stdout_to_output and staged is not None:
            stdout_file = staged.open("wb")
            stdout_target = stdout_file
        elif settings.inherit_stdout:
            stdout_target = None
        else:
            stdout_target = subprocess.DEVNULL
        if settings.capture_stderr:
            stderr_file = tempfile.TemporaryFile()

        exit_code, stdout = _run_process(
            argv,
            effective,
            stdout_target=stdout_target,
            stderr_target=stderr_file,
            config=settings,
            candidate_name=candidate.name,
            logger=effective_logger,
        )
        duration = time.monotonic() - started
        if stdout_file is not None:
            stdout_file.close()

        if exit_code != 0:
            stderr_tail = _read_tail(stderr_file, settings.stderr_tail_lines)
            effective_logger.warning(
                "invoke.failed verb=%s candidate=%s exit_code=%s duration_seconds=%.3f",
                invocation.verb,
                candidate.name,
                exit_code,
                duration,
            )
            raise ExecutionFailed(candidate.name, exit_code, stderr_tail)

        produced: Path | None = None
        if staged is not None and target is not None:
            if not staged.exists():
                effective_logger.warning(
                    "invoke.missing_output verb=%s candidate=%s target=%s",
                    invocation.verb,
                    candidate.name,
                    target,
                )
                raise ExecutionFailed(
                    candidate.name,
                    exit_code,
                    _read_tail(stderr_file, settings.stderr_tail_lines),
                    detail=f"{candidate.name} exited 0 but produced no output",
                )
            os.replace(staged, target)
            produced = target
        elif target is not None and target.exists():
            produced = target
        succeeded = True
        effective_logger.info(
            "invoke.finished verb=%s candidate=%s exit_code=%s duration_seconds=%.3f artifact=%s",
            invocation.verb,
            candidate.name,
            exit_code,
            duration,
            produced,
        )
        return ExecutionResult(
            candidate=candidate.name,
            exit_code=exit_code,
            duration_seconds=duration,
            produced_artifact_path=produced,
            stdout=stdout,
        )
    finally:
        if stdout_file is not None and not stdout_file.closed:
            stdout_file.close()
        if stderr_file is not None:
            stderr_file.close()
        if staged is not None and staged.exists():
            staged.unlink()
        if not succeeded and created_dir and target is not None and target.exists():
            effective_logger.info("invoke.cleanup_partial_output path=%s", target)
            remove_path(target)
