"""Website mirroring verb."""

from __future__ import annotations

from urllib.parse import urlparse

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import InvalidArguments

GROUP_CRAWLER = "crawler"


def _httrack_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, str(invocation.input_path), "-O", str(invocation.output_path)]


def _wget_mirror_argv(executable: str, invocation: Invocation) -> list[str]:
    return [
        executable,
        "--mirror",
        "--convert-links",
        "--adjust-extension",
        "--page-requisites",
        "--no-parent",
        "--no-host-directories",
        "--directory-prefix",
        str(invocation.output_path),
        str(invocation.input_path),
    ]


def candidate_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(
            GROUP_CRAWLER,
            (
                ToolCandidate("httrack", _httrack_argv, priority=0),
                ToolCandidate("wget", _wget_mirror_argv, priority=1),
            ),
        ),
    )


def mirror(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Mirror a website into a local directory (default: the URL's host name)."""

    if len(args) not in (1, 2):
        raise InvalidArguments("mirror", "usage: mirror <url> [outputDir]")
    url = args[0].strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise InvalidArguments("mirror", f"expected an http(s) URL, got {url!r}")
    output_dir = context.workdir / (args[1] if len(args) == 2 else parsed.hostname)

    context.execute(
        GROUP_CRAWLER,
        Invocation(verb="mirror", input_path=url, output_path=output_dir, output_is_dir=True),
    )
    return VerbOutcome(message=f"Mirrored {url} into {output_dir}.", artifacts=(output_dir,))


VERBS = (
    VerbSpec(
        name="mirror",
        handler=mirror,
        candidate_groups=candidate_groups,
        usage="mirror <url> [outputDir]",
        summary="Mirror a website for offline browsing.",
    ),
)
