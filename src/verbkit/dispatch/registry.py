"""Static verb registry."""

from __future__ import annotations

from typing import Iterable

from verbkit.backends.policy import CandidateGroup
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbSpec


def build_registry() -> dict[str, VerbSpec]:
    """Return every built-in verb keyed by name."""

    # Verb modules import the dispatch package, so they are loaded here.
    from verbkit.verbs import archive, bootstrap, certs, documents, media, web

    registry: dict[str, VerbSpec] = {}
    for module in (archive, media, certs, documents, web, bootstrap):
        for spec in module.VERBS:
            if spec.name in registry:
                raise ValueError(f"Verb {spec.name!r} registered twice")
            registry[spec.name] = spec
    return registry


def collect_candidate_groups(specs: Iterable[VerbSpec], settings: AppSettings) -> dict[str, CandidateGroup]:
    """Gather the candidate groups declared by ``specs``; first declaration wins."""

    groups: dict[str, CandidateGroup] = {}
    for spec in specs:
        for group in spec.candidate_groups(settings):
            groups.setdefault(group.name, group)
    return groups
