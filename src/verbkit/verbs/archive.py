"""Archive verb: tar the inputs, then gzip-compress with the best available tool."""

from __future__ import annotations

from pathlib import Path

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import InvalidArguments
from verbkit.utils.paths import scoped_directory

GROUP_ARCHIVE = "archive"
GROUP_COMPRESSOR = "compressor"
ARCHIVE_EXCLUDES: tuple[str, ...] = (".DS_Store",)


def _tar_argv(executable: str, invocation: Invocation) -> list[str]:
    excludes = [f"--exclude={pattern}" for pattern in ARCHIVE_EXCLUDES]
    return [executable, "-cf", str(invocation.output_path), *excludes, "--", *invocation.extra_args]


def _zopfli_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "-c", "--i15", str(invocation.input_path)]


def _pigz_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "-c", str(invocation.input_path)]


def _gzip_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "-c", str(invocation.input_path)]


def candidate_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(GROUP_ARCHIVE, (ToolCandidate("tar", _tar_argv),)),
        CandidateGroup(
            GROUP_COMPRESSOR,
            (
                ToolCandidate(
                    "zopfli",
                    _zopfli_argv,
                    priority=0,
                    max_input_bytes=settings.policy.fast_compressor_max_bytes,
                ),
                ToolCandidate("pigz", _pigz_argv, priority=1),
                ToolCandidate("gzip", _gzip_argv, priority=2),
            ),
        ),
    )


def archive_base_name(first_path: str) -> str:
    """Name the archive after the first input, ignoring trailing slashes."""

    return Path(first_path.rstrip("/")).name or "archive"


def compress(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Create ``<first path>.tar.gz`` in the working directory from ``args``."""

    if not args:
        raise InvalidArguments("compress", "at least one path is required")
    missing = [arg for arg in args if not (context.workdir / arg).exists()]
    if missing:
        raise InvalidArguments("compress", f"no such file or directory: {', '.join(missing)}")

    base_name = archive_base_name(args[0])
    output_path = context.workdir / f"{base_name}.tar.gz"
    with scoped_directory() as scratch:
        tar_path = scratch / f"{base_name}.tar"
        context.execute(
            GROUP_ARCHIVE,
            Invocation(verb="compress", output_path=tar_path, extra_args=tuple(args), cwd=context.workdir),
        )
        tar_size = tar_path.stat().st_size
        result = context.execute(
            GROUP_COMPRESSOR,
            Invocation(
                verb="compress",
                input_path=str(tar_path),
                output_path=output_path,
                stdout_to_output=True,
            ),
            size_bytes=tar_size,
        )

    return VerbOutcome(
        message=f"{output_path.name} ({tar_size} bytes uncompressed) created successfully using {result.candidate}.",
        artifacts=(output_path,),
    )


VERBS = (
    VerbSpec(
        name="compress",
        handler=compress,
        candidate_groups=candidate_groups,
        usage="compress <paths...>",
        summary="Create a .tar.gz archive of the given files or directories.",
    ),
)
