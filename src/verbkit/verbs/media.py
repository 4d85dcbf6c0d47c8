"""Audio and image conversion verbs."""

from __future__ import annotations

import glob
import logging
from pathlib import Path

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import InvalidArguments

LOGGER = logging.getLogger(__name__)

GROUP_AUDIO = "audio"
GROUP_IMAGE = "image"


def _ffmpeg_argv(executable: str, invocation: Invocation) -> list[str]:
    (codec,) = invocation.extra_args
    return [
        executable,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i",
        str(invocation.input_path),
        "-vn",
        "-c:a",
        codec,
        str(invocation.output_path),
    ]


def _avconv_argv(executable: str, invocation: Invocation) -> list[str]:
    (codec,) = invocation.extra_args
    return [executable, "-y", "-i", str(invocation.input_path), "-vn", "-c:a", codec, str(invocation.output_path)]


def _magick_argv(executable: str, invocation: Invocation) -> list[str]:
    (geometry,) = invocation.extra_args
    return [executable, str(invocation.input_path), "-resize", geometry, str(invocation.output_path)]


def _graphicsmagick_argv(executable: str, invocation: Invocation) -> list[str]:
    (geometry,) = invocation.extra_args
    return [executable, "convert", str(invocation.input_path), "-resize", geometry, str(invocation.output_path)]


def audio_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(
            GROUP_AUDIO,
            (
                ToolCandidate("ffmpeg", _ffmpeg_argv, priority=0),
                ToolCandidate("avconv", _avconv_argv, priority=1),
            ),
        ),
    )


def image_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(
            GROUP_IMAGE,
            (
                ToolCandidate("magick", _magick_argv, priority=0),
                ToolCandidate("convert", _magick_argv, priority=1),
                ToolCandidate("gm", _graphicsmagick_argv, priority=2),
            ),
        ),
    )


def matching_files(workdir: Path, pattern: str) -> list[Path]:
    """Return regular files matching ``pattern``, relative patterns resolved against ``workdir``."""

    if Path(pattern).is_absolute():
        matches = [Path(match) for match in glob.glob(pattern)]
    else:
        matches = [workdir / match for match in glob.glob(pattern, root_dir=workdir)]
    return sorted(path for path in matches if path.is_file())


def transcode_audio(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Re-encode every file matching a glob into ``<stem>.<containerExt>``."""

    if len(args) != 3:
        raise InvalidArguments("transcode-audio", "usage: transcode-audio <glob> <codec> <containerExt>")
    pattern, codec, extension = (arg.strip() for arg in args)
    extension = extension.lstrip(".")
    if not pattern or not codec or not extension:
        raise InvalidArguments("transcode-audio", "glob, codec and container extension must be non-empty")

    sources = matching_files(context.workdir, pattern)
    if not sources:
        raise InvalidArguments("transcode-audio", f"no files match {pattern!r}")

    claimed: dict[Path, Path] = {}
    for source in sources:
        output_path = source.with_suffix(f".{extension}")
        if output_path == source:
            continue
        if output_path in claimed:
            raise InvalidArguments(
                "transcode-audio",
                f"{claimed[output_path].name} and {source.name} would both be written to {output_path.name}",
            )
        claimed[output_path] = source

    lines: list[str] = []
    artifacts: list[Path] = []
    for source in sources:
        output_path = source.with_suffix(f".{extension}")
        if output_path == source:
            LOGGER.info("transcode_audio.skip_same_container path=%s", source)
            lines.append(f"skipped {source.name}: already a .{extension} file")
            continue
        context.execute(
            GROUP_AUDIO,
            Invocation(
                verb="transcode-audio",
                input_path=str(source),
                output_path=output_path,
                extra_args=(codec,),
            ),
            size_bytes=source.stat().st_size,
        )
        lines.append(f"{source.name} -> {output_path.name}")
        artifacts.append(output_path)

    return VerbOutcome(
        message=f"Transcoded {len(artifacts)} file(s) to {codec} in .{extension} containers.",
        lines=tuple(lines),
        artifacts=tuple(artifacts),
    )


def resize(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Resize an image to an ImageMagick geometry such as ``800x600`` or ``50%``."""

    if len(args) not in (2, 3):
        raise InvalidArguments("resize", "usage: resize <path> <geometry> [outputPath]")
    source = context.workdir / args[0]
    geometry = args[1].strip()
    if not source.is_file():
        raise InvalidArguments("resize", f"no such file: {args[0]}")
    if not geometry:
        raise InvalidArguments("resize", "geometry must be non-empty")
    if len(args) == 3:
        output_path = context.workdir / args[2]
    else:
        output_path = source.with_name(f"{source.stem}_resized{source.suffix}")
    if output_path.resolve() == source.resolve():
        raise InvalidArguments("resize", "output path must differ from the input")

    context.execute(
        GROUP_IMAGE,
        Invocation(verb="resize", input_path=str(source), output_path=output_path, extra_args=(geometry,)),
        size_bytes=source.stat().st_size,
    )
    return VerbOutcome(message=f"{output_path.name} created.", artifacts=(output_path,))


VERBS = (
    VerbSpec(
        name="transcode-audio",
        handler=transcode_audio,
        candidate_groups=audio_groups,
        usage="transcode-audio <glob> <codec> <containerExt>",
        summary="Re-encode matching audio files with the given codec.",
    ),
    VerbSpec(
        name="resize",
        handler=resize,
        candidate_groups=image_groups,
        usage="resize <path> <geometry> [outputPath]",
        summary="Resize an image with ImageMagick or GraphicsMagick.",
    ),
)
