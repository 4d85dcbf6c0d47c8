"""Error taxonomy surfaced to dispatch callers."""

from __future__ import annotations

from typing import Mapping, Sequence

EXIT_FAILURE = 1
EXIT_USAGE = 2


class VerbError(Exception):
    """Base class for failures reported as a structured dispatch result."""

    kind = "VerbError"
    exit_code = EXIT_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoCandidateAvailable(VerbError):
    """No backend in the preference list is present or satisfies its constraints."""

    kind = "NoCandidateAvailable"

    def __init__(self, tried: Sequence[str], reasons: Mapping[str, str] | None = None) -> None:
        self.tried = tuple(tried)
        self.reasons = dict(reasons or {})
        rendered = ", ".join(
            f"{name} ({self.reasons[name]})" if name in self.reasons else name for name in self.tried
        )
        super().__init__(f"no usable backend; tried: {rendered or '<none>'}")


class ExecutionFailed(VerbError):
    """The selected backend ran but did not succeed."""

    kind = "ExecutionFailed"

    def __init__(
        self,
        candidate: str,
        exit_code: int | None,
        stderr_tail: str = "",
        detail: str | None = None,
    ) -> None:
        self.candidate = candidate
        self.returncode = exit_code
        self.stderr_tail = stderr_tail
        if detail is None:
            if exit_code is None:
                detail = f"{candidate} did not complete"
            else:
                detail = f"{candidate} exited with status {exit_code}"
        super().__init__(f"{detail}\n{stderr_tail}" if stderr_tail else detail)


class UnknownVerb(VerbError):
    """The requested verb is not in the registry."""

    kind = "UnknownVerb"
    exit_code = EXIT_USAGE

    def __init__(self, verb: str, known: Sequence[str] = ()) -> None:
        self.verb = verb
        self.known = tuple(known)
        message = f"unknown verb {verb!r}"
        if self.known:
            message += f"; expected one of: {', '.join(self.known)}"
        super().__init__(message)


class InvalidArguments(VerbError):
    """A verb was called with missing or malformed arguments."""

    kind = "InvalidArguments"
    exit_code = EXIT_USAGE

    def __init__(self, verb: str, reason: str) -> None:
        self.verb = verb
        self.reason = reason
        super().__init__(f"{verb}: {reason}")
