"""Backend probing, selection, and invocation."""

from verbkit.backends.invoke import ExecutionResult, Invocation, invoke
from verbkit.backends.policy import (
    ArgvBuilder,
    CandidateGroup,
    SelectionTask,
    ToolCandidate,
    select,
    with_availability,
)
from verbkit.backends.probe import ToolProbe, default_probe

__all__ = [
    "ArgvBuilder",
    "CandidateGroup",
    "ExecutionResult",
    "Invocation",
    "SelectionTask",
    "ToolCandidate",
    "ToolProbe",
    "default_probe",
    "invoke",
    "select",
    "with_availability",
]
