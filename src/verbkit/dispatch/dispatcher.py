"""Verb dispatch facade: registry lookup, then probe, select, and invoke."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Sequence

from verbkit.backends.invoke import ExecutionResult, Invocation, invoke
from verbkit.backends.policy import CandidateGroup, SelectionTask, ToolCandidate, select, with_availability
from verbkit.backends.probe import ToolProbe, default_probe
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbSpec
from verbkit.dispatch.registry import build_registry, collect_candidate_groups
from verbkit.errors import UnknownVerb, VerbError

LOGGER = logging.getLogger(__name__)

EXIT_SUCCESS = 0


class DispatchState(str, Enum):
    """Per-call lifecycle; SUCCEEDED and FAILED are terminal."""

    IDLE = "idle"
    PROBED = "probed"
    SELECTED = "selected"
    INVOKED = "invoked"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Structured result of one dispatch, successful or not."""

    verb: str
    state: DispatchState
    exit_code: int
    message: str = ""
    error_kind: str | None = None
    output_lines: tuple[str, ...] = ()
    artifacts: tuple[Path, ...] = ()
    executions: tuple[ExecutionResult, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.state is DispatchState.SUCCEEDED


class Dispatcher:
    """Route named verbs to their handlers.

    Handlers never pick or run tools themselves; they call back into
    :meth:`execute`, the only path through probe, selection, and invocation.
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        probe: ToolProbe | None = None,
        registry: Mapping[str, VerbSpec] | None = None,
        workdir: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.probe = probe or default_probe()
        self.registry = dict(registry) if registry is not None else build_registry()
        self.workdir = (workdir or Path.cwd()).resolve()
        self.logger = logger or LOGGER
        self._groups = collect_candidate_groups(self.registry.values(), settings)
        self._validate_order_overrides()

    def _validate_order_overrides(self) -> None:
        for group_name, order in self.settings.backends.order.items():
            group = self._groups.get(group_name)
            if group is None:
                raise ValueError(
                    f"backends.order references unknown group {group_name!r}; "
                    f"known: {', '.join(sorted(self._groups))}"
                )
            group.ordered(order)

    def verbs(self) -> list[str]:
        return sorted(self.registry)

    def groups(self) -> dict[str, CandidateGroup]:
        return dict(self._groups)

    def candidates(self, group_name: str) -> tuple[ToolCandidate, ...]:
        """Return the preference list for ``group_name`` after config overrides."""

        group = self._groups.get(group_name)
        if group is None:
            raise KeyError(f"Unknown candidate group: {group_name}")
        return group.ordered(self.settings.backends.order.get(group_name))

    def execute(
        self,
        verb: str,
        group_name: str,
        invocation: Invocation,
        size_bytes: int = 0,
    ) -> ExecutionResult:
        """Probe, select exactly one candidate, and invoke it. No retry on failure."""

        preferred = self.candidates(group_name)
        availability = self.probe.probe(candidate.name for candidate in preferred)
        self.logger.info(
            "dispatch.state verb=%s group=%s state=%s availability=%s",
            verb,
            group_name,
            DispatchState.PROBED.value,
            availability,
        )

        task = SelectionTask(size_bytes=size_bytes, preferred_order=with_availability(preferred, availability))
        candidate = select(task, availability, logger=self.logger)
        self.logger.info(
            "dispatch.state verb=%s group=%s state=%s candidate=%s size_bytes=%s",
            verb,
            group_name,
            DispatchState.SELECTED.value,
            candidate.name,
            size_bytes,
        )

        result = invoke(
            candidate,
            invocation,
            executable=self.probe.resolve(candidate.name),
            config=self.settings.execution,
            logger=self.logger,
        )
        self.logger.info(
            "dispatch.state verb=%s group=%s state=%s candidate=%s",
            verb,
            group_name,
            DispatchState.INVOKED.value,
            candidate.name,
        )
        return result

    def run(self, verb: str, args: Sequence[str]) -> DispatchResult:
        """Dispatch ``verb`` and return a structured result instead of raising VerbError."""

        self.logger.info("dispatch.start verb=%s args=%s state=%s", verb, list(args), DispatchState.IDLE.value)
        spec = self.registry.get(verb)
        if spec is None:
            return self._failed(verb, UnknownVerb(verb, self.verbs()), ())

        context = VerbContext(self, verb)
        try:
            outcome = spec.handler(context, list(args))
        except VerbError as exc:
            return self._failed(verb, exc, tuple(context.executions))

        self.logger.info(
            "dispatch.finished verb=%s state=%s executions=%s",
            verb,
            DispatchState.SUCCEEDED.value,
            len(context.executions),
        )
        return DispatchResult(
            verb=verb,
            state=DispatchState.SUCCEEDED,
            exit_code=EXIT_SUCCESS,
            message=outcome.message,
            output_lines=outcome.lines,
            artifacts=outcome.artifacts,
            executions=tuple(context.executions),
        )

    def dispatch(self, verb: str, args: Sequence[str]) -> int:
        """Dispatch ``verb`` and return the process exit code."""

        return self.run(verb, args).exit_code

    def _failed(
        self,
        verb: str,
        error: VerbError,
        executions: tuple[ExecutionResult, ...],
    ) -> DispatchResult:
        self.logger.warning(
            "dispatch.finished verb=%s state=%s kind=%s message=%s",
            verb,
            DispatchState.FAILED.value,
            error.kind,
            error.message,
        )
        return DispatchResult(
            verb=verb,
            state=DispatchState.FAILED,
            exit_code=error.exit_code,
            message=error.message,
            error_kind=error.kind,
            executions=executions,
        )
