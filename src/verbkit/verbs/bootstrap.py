"""Home-directory bootstrap from a dotfiles checkout."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import InvalidArguments
from verbkit.utils.paths import copy_file_atomically

LOGGER = logging.getLogger(__name__)

GROUP_VCS = "vcs"
GROUP_DOWNLOAD = "download"
FORCE_FLAGS = frozenset({"--force", "-f"})
GIT_COMPLETION_FILE = ".git-completion.bash"


def _git_pull_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "pull", *invocation.extra_args]


def _curl_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "-fsSL", "-o", str(invocation.output_path), str(invocation.input_path)]


def _wget_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "-q", "-O", str(invocation.output_path), str(invocation.input_path)]


def candidate_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(GROUP_VCS, (ToolCandidate("git", _git_pull_argv),)),
        CandidateGroup(
            GROUP_DOWNLOAD,
            (
                ToolCandidate("curl", _curl_argv, priority=0),
                ToolCandidate("wget", _wget_argv, priority=1),
            ),
        ),
    )


def dotfiles_to_copy(source_root: Path, exclude: Iterable[str]) -> list[Path]:
    """Top-level regular files whose names start with a dot, minus ``exclude``."""

    excluded = set(exclude)
    return [
        entry
        for entry in sorted(source_root.iterdir())
        if entry.name.startswith(".") and entry.name not in excluded and entry.is_file()
    ]


def bootstrap(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Update the dotfiles checkout, fetch git completion, and copy dotfiles home.

    Overwrites files in the home directory, so ``--force`` is mandatory here;
    interactive confirmation belongs to the CLI.
    """

    unknown = [arg for arg in args if arg not in FORCE_FLAGS]
    if unknown:
        raise InvalidArguments("bootstrap", f"unexpected argument(s): {' '.join(unknown)}")
    if not args:
        raise InvalidArguments(
            "bootstrap",
            "this may overwrite existing files in your home directory; pass --force to continue",
        )

    paths = context.settings.paths
    options = context.settings.bootstrap
    if not paths.dotfiles_root.is_dir():
        raise InvalidArguments("bootstrap", f"dotfiles directory not found: {paths.dotfiles_root}")
    if not paths.home_dir.is_dir():
        raise InvalidArguments("bootstrap", f"home directory not found: {paths.home_dir}")

    lines: list[str] = []
    if options.pull and (paths.dotfiles_root / ".git").exists():
        context.execute(
            GROUP_VCS,
            Invocation(verb="bootstrap", cwd=paths.dotfiles_root, extra_args=("origin", options.branch)),
        )
        lines.append(f"updated {paths.dotfiles_root} from origin/{options.branch}")
    else:
        LOGGER.info("bootstrap.skip_pull dotfiles_root=%s pull=%s", paths.dotfiles_root, options.pull)

    completion_path = paths.home_dir / GIT_COMPLETION_FILE
    context.execute(
        GROUP_DOWNLOAD,
        Invocation(verb="bootstrap", input_path=options.git_completion_url, output_path=completion_path),
    )
    lines.append(f"downloaded {completion_path}")

    copied: list[Path] = []
    for source in dotfiles_to_copy(paths.dotfiles_root, options.exclude):
        copied.append(copy_file_atomically(source, paths.home_dir / source.name))
        lines.append(f"copied {source.name}")

    return VerbOutcome(
        message=(
            f"Copied {len(copied)} dotfile(s) into {paths.home_dir}. "
            "Run `source ~/.bash_profile` to load them into the current shell."
        ),
        lines=tuple(lines),
        artifacts=(completion_path, *copied),
    )


VERBS = (
    VerbSpec(
        name="bootstrap",
        handler=bootstrap,
        candidate_groups=candidate_groups,
        usage="bootstrap [--force|-f]",
        summary="Pull the dotfiles checkout and install its dotfiles into the home directory.",
    ),
)
