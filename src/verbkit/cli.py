"""Typer CLI entrypoint for verbkit."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from types import FrameType

import typer
import yaml

from verbkit.config import AppSettings, load_settings
from verbkit.dispatch.dispatcher import Dispatcher, DispatchResult
from verbkit.logging_utils import configure_logging

LOG_FILE_NAME = "verbkit.log"

app = typer.Typer(
    add_completion=False,
    help="verbkit: dotfile-style convenience verbs over interchangeable command-line tools.",
    no_args_is_help=True,
)

CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config-file",
    help="Optional settings YAML path.",
    exists=False,
    file_okay=True,
    dir_okay=False,
    readable=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(
            settings.paths.logs_root / LOG_FILE_NAME,
            level=settings.logging.level,
            console_level=settings.logging.console_level,
        )
    else:
        logger = logging.getLogger("verbkit")
    return settings, logger


def _build_dispatcher(settings: AppSettings, logger: logging.Logger) -> Dispatcher:
    try:
        return Dispatcher(settings, logger=logger)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _echo_result(result: DispatchResult) -> None:
    for line in result.output_lines:
        typer.echo(line)
    if result.succeeded:
        if result.message:
            typer.echo(result.message)
        return
    typer.echo(f"error [{result.error_kind}]: {result.message}", err=True)


def _dispatch_and_exit(verb: str, args: list[str], config_file: Path | None) -> None:
    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    dispatcher = _build_dispatcher(settings, logger)
    result = dispatcher.run(verb, args)
    _echo_result(result)
    raise typer.Exit(code=result.exit_code)


@app.command("show-config")
def show_config(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("probe")
def probe_cmd(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """List every candidate group with the availability of its backends."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    dispatcher = _build_dispatcher(settings, logger)
    for group_name in sorted(dispatcher.groups()):
        typer.echo(f"{group_name}:")
        for candidate in dispatcher.candidates(group_name):
            path = dispatcher.probe.resolve(candidate.name)
            limit = f" (< {candidate.max_input_bytes} bytes)" if candidate.max_input_bytes else ""
            status = path if path else "missing"
            typer.echo(f"  {candidate.priority}. {candidate.name}{limit}: {status}")


@app.command("verbs")
def verbs_cmd(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """List registered verbs with their usage."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    dispatcher = _build_dispatcher(settings, logger)
    for name in dispatcher.verbs():
        spec = dispatcher.registry[name]
        typer.echo(f"{spec.usage:<55} {spec.summary}")


@app.command("run", context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run_cmd(
    ctx: typer.Context,
    verb: str = typer.Argument(..., help="Registered verb name."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Dispatch VERB with the remaining arguments passed through unchanged."""

    _dispatch_and_exit(verb, list(ctx.args), config_file)


@app.command("compress")
def compress_cmd(
    paths: list[str] = typer.Argument(..., help="Files or directories to archive."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Create <first path>.tar.gz, using zopfli for small archives, else pigz, else gzip."""

    _dispatch_and_exit("compress", paths, config_file)


@app.command("transcode-audio")
def transcode_audio_cmd(
    pattern: str = typer.Argument(..., help="Glob of input files, e.g. '*.flac'."),
    codec: str = typer.Argument(..., help="Audio codec, e.g. libmp3lame or aac."),
    container_ext: str = typer.Argument(..., help="Output container extension, e.g. mp3."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Re-encode every matching file into <stem>.<containerExt>."""

    _dispatch_and_exit("transcode-audio", [pattern, codec, container_ext], config_file)


@app.command("resize")
def resize_cmd(
    path: str = typer.Argument(..., help="Input image."),
    geometry: str = typer.Argument(..., help="ImageMagick geometry, e.g. 800x600 or 50%."),
    output_path: str | None = typer.Argument(None, help="Output image path."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Resize an image."""

    args = [path, geometry] + ([output_path] if output_path else [])
    _dispatch_and_exit("resize", args, config_file)


@app.command("cert-names")
def cert_names_cmd(
    domain: str = typer.Argument(..., help="Domain serving TLS on port 443."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Show the Common Name and Subject Alternative Names of a domain's certificate."""

    _dispatch_and_exit("cert-names", [domain], config_file)


@app.command("split-pdf")
def split_pdf_cmd(
    path: str = typer.Argument(..., help="Input PDF."),
    first_page: str = typer.Argument(..., help="First page to keep (1-based)."),
    last_page: str | None = typer.Argument(None, help="Last page to keep; defaults to first page."),
    output_path: str | None = typer.Argument(None, help="Output PDF path."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Extract a page range of a PDF with Ghostscript or qpdf."""

    args = [path, first_page]
    if last_page is not None:
        args.append(last_page)
        if output_path is not None:
            args.append(output_path)
    _dispatch_and_exit("split-pdf", args, config_file)


@app.command("mirror")
def mirror_cmd(
    url: str = typer.Argument(..., help="http(s) URL to mirror."),
    output_dir: str | None = typer.Argument(None, help="Target directory; defaults to the host name."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Mirror a website with httrack or wget."""

    _dispatch_and_exit("mirror", [url] + ([output_dir] if output_dir else []), config_file)


@app.command("bootstrap")
def bootstrap_cmd(
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Pull the dotfiles checkout, fetch git completion, and copy dotfiles into your home."""

    if not force:
        typer.confirm(
            "This may overwrite existing files in your home directory. Are you sure?",
            abort=True,
        )
    _dispatch_and_exit("bootstrap", ["--force"], config_file)


def _exit_on_sigterm(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


def main() -> None:
    """Console-script entrypoint; SIGTERM unwinds like Ctrl-C so children are terminated."""

    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    app()


if __name__ == "__main__":
    main()
