"""Declarative backend selection policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

from verbkit.errors import NoCandidateAvailable

if TYPE_CHECKING:
    from verbkit.backends.invoke import Invocation

LOGGER = logging.getLogger(__name__)

ArgvBuilder = Callable[[str, "Invocation"], list[str]]


@dataclass(frozen=True, slots=True)
class ToolCandidate:
    """One interchangeable backend executable for a candidate group.

    ``name`` is the executable looked up on ``PATH``; ``build_argv`` turns the
    resolved executable and an Invocation into the argument vector.
    """

    name: str
    build_argv: ArgvBuilder = field(compare=False, repr=False)
    priority: int = 0
    max_input_bytes: int | None = None
    available: bool = False

    def accepts_size(self, size_bytes: int) -> bool:
        """Return True when the input is strictly below this candidate's size limit."""

        return self.max_input_bytes is None or size_bytes < self.max_input_bytes


@dataclass(frozen=True, slots=True)
class CandidateGroup:
    """Named, ordered set of candidates able to perform one step of a verb."""

    name: str
    candidates: tuple[ToolCandidate, ...]

    def names(self) -> list[str]:
        return [candidate.name for candidate in self.ordered()]

    def ordered(self, order: Sequence[str] | None = None) -> tuple[ToolCandidate, ...]:
        """Return candidates by priority, or restricted and re-ranked by ``order``."""

        if not order:
            return tuple(sorted(self.candidates, key=lambda candidate: candidate.priority))

        by_name = {candidate.name: candidate for candidate in self.candidates}
        unknown = [name for name in order if name not in by_name]
        if unknown:
            raise ValueError(
                f"Candidate group {self.name!r} has no backend(s) {', '.join(unknown)}; "
                f"known: {', '.join(sorted(by_name))}"
            )
        return tuple(replace(by_name[name], priority=index) for index, name in enumerate(order))


@dataclass(frozen=True, slots=True)
class SelectionTask:
    """Runtime inputs to selection: input size and the preference list."""

    size_bytes: int
    preferred_order: tuple[ToolCandidate, ...]


def with_availability(
    candidates: Sequence[ToolCandidate],
    availability: Mapping[str, bool],
) -> tuple[ToolCandidate, ...]:
    """Return copies of ``candidates`` carrying their probe result."""

    return tuple(replace(candidate, available=availability.get(candidate.name, False)) for candidate in candidates)


def select(
    task: SelectionTask,
    availability: Mapping[str, bool],
    logger: logging.Logger | None = None,
) -> ToolCandidate:
    """Pick the first available candidate whose constraints accept the task.

    ``availability`` wins over ``ToolCandidate.available``; the flag only
    decides for names the mapping does not cover.
    Raises NoCandidateAvailable naming every candidate that was considered.
    """

    effective_logger = logger or LOGGER
    tried: list[str] = []
    reasons: dict[str, str] = {}
    for candidate in sorted(task.preferred_order, key=lambda item: item.priority):
        tried.append(candidate.name)
        if not availability.get(candidate.name, candidate.available):
            reasons[candidate.name] = "not installed"
            continue
        if not candidate.accepts_size(task.size_bytes):
            reasons[candidate.name] = f"input {task.size_bytes} bytes >= limit {candidate.max_input_bytes}"
            continue
        effective_logger.debug(
            "policy.selected candidate=%s size_bytes=%s skipped=%s available=%s",
            candidate.name,
            task.size_bytes,
            reasons,
            {item.name: item.available for item in task.preferred_order},
        )
        return candidate
    raise NoCandidateAvailable(tried, reasons)
