"""Verb dispatch facade and handler-facing types."""

from verbkit.dispatch.context import VerbContext, VerbHandler, VerbOutcome, VerbSpec
from verbkit.dispatch.dispatcher import DispatchResult, DispatchState, Dispatcher
from verbkit.dispatch.registry import build_registry, collect_candidate_groups

__all__ = [
    "DispatchResult",
    "DispatchState",
    "Dispatcher",
    "VerbContext",
    "VerbHandler",
    "VerbOutcome",
    "VerbSpec",
    "build_registry",
    "collect_candidate_groups",
]
