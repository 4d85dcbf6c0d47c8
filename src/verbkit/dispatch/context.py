"""Types shared between the dispatcher and verb handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from verbkit.backends.invoke import ExecutionResult, Invocation
from verbkit.backends.policy import CandidateGroup
from verbkit.config import AppSettings

if TYPE_CHECKING:
    from verbkit.dispatch.dispatcher import Dispatcher


@dataclass(frozen=True, slots=True)
class VerbOutcome:
    """What a handler reports after all of its invocations succeeded."""

    message: str = ""
    lines: tuple[str, ...] = ()
    artifacts: tuple[Path, ...] = ()


class VerbContext:
    """Per-dispatch handle through which handlers reach probe, policy, and adapter."""

    def __init__(self, dispatcher: "Dispatcher", verb: str) -> None:
        self._dispatcher = dispatcher
        self.verb = verb
        self.executions: list[ExecutionResult] = []

    @property
    def settings(self) -> AppSettings:
        return self._dispatcher.settings

    @property
    def workdir(self) -> Path:
        return self._dispatcher.workdir

    @property
    def logger(self) -> logging.Logger:
        return self._dispatcher.logger

    def execute(self, group: str, invocation: Invocation, size_bytes: int = 0) -> ExecutionResult:
        """Probe, select, and invoke one candidate of ``group``."""

        result = self._dispatcher.execute(self.verb, group, invocation, size_bytes=size_bytes)
        self.executions.append(result)
        return result


VerbHandler = Callable[[VerbContext, list[str]], VerbOutcome]
GroupFactory = Callable[[AppSettings], "tuple[CandidateGroup, ...]"]


@dataclass(frozen=True, slots=True)
class VerbSpec:
    """Registry entry for one named verb."""

    name: str
    handler: VerbHandler = field(repr=False)
    candidate_groups: GroupFactory = field(repr=False)
    usage: str = ""
    summary: str = ""
