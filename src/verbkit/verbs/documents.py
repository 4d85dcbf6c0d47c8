"""PDF page extraction verb."""

from __future__ import annotations

from pathlib import Path

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import InvalidArguments

GROUP_PDF = "pdf"


def _ghostscript_argv(executable: str, invocation: Invocation) -> list[str]:
    first_page, last_page = invocation.extra_args
    return [
        executable,
        "-q",
        "-dNOPAUSE",
        "-dBATCH",
        "-dSAFER",
        "-sDEVICE=pdfwrite",
        f"-dFirstPage={first_page}",
        f"-dLastPage={last_page}",
        f"-sOutputFile={invocation.output_path}",
        str(invocation.input_path),
    ]


def _qpdf_argv(executable: str, invocation: Invocation) -> list[str]:
    first_page, last_page = invocation.extra_args
    return [
        executable,
        str(invocation.input_path),
        "--pages",
        ".",
        f"{first_page}-{last_page}",
        "--",
        str(invocation.output_path),
    ]


def candidate_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(
            GROUP_PDF,
            (
                ToolCandidate("gs", _ghostscript_argv, priority=0),
                ToolCandidate("qpdf", _qpdf_argv, priority=1),
            ),
        ),
    )


def parse_page(label: str, raw: str) -> int:
    try:
        page = int(raw)
    except ValueError as exc:
        raise InvalidArguments("split-pdf", f"{label} must be an integer, got {raw!r}") from exc
    if page < 1:
        raise InvalidArguments("split-pdf", f"{label} must be >= 1, got {page}")
    return page


def default_output_path(source: Path, first_page: int, last_page: int) -> Path:
    return source.with_name(f"{source.stem}_p{first_page}-{last_page}.pdf")


def split_pdf(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Extract pages ``firstPage..lastPage`` of a PDF into a new document."""

    if not 2 <= len(args) <= 4:
        raise InvalidArguments("split-pdf", "usage: split-pdf <path> <firstPage> [lastPage] [outputPath]")
    source = context.workdir / args[0]
    if not source.is_file():
        raise InvalidArguments("split-pdf", f"no such file: {args[0]}")
    first_page = parse_page("firstPage", args[1])
    last_page = parse_page("lastPage", args[2]) if len(args) >= 3 else first_page
    if last_page < first_page:
        raise InvalidArguments("split-pdf", f"lastPage ({last_page}) is before firstPage ({first_page})")
    if len(args) == 4:
        output_path = context.workdir / args[3]
    else:
        output_path = default_output_path(source, first_page, last_page)

    context.execute(
        GROUP_PDF,
        Invocation(
            verb="split-pdf",
            input_path=str(source),
            output_path=output_path,
            extra_args=(str(first_page), str(last_page)),
        ),
        size_bytes=source.stat().st_size,
    )
    return VerbOutcome(message=f"Pages {first_page}-{last_page} written to {output_path.name}.", artifacts=(output_path,))


VERBS = (
    VerbSpec(
        name="split-pdf",
        handler=split_pdf,
        candidate_groups=candidate_groups,
        usage="split-pdf <path> <firstPage> [lastPage] [outputPath]",
        summary="Extract a page range of a PDF.",
    ),
)
