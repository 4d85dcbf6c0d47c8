"""Shared fixtures: isolated settings, fake backend executables, and a fake probe."""

from __future__ import annotations

import logging
import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from verbkit.backends.probe import ToolProbe
from verbkit.config import AppSettings, load_settings
from verbkit.dispatch.dispatcher import Dispatcher


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    """Defaults only (no YAML on disk), with every path inside ``tmp_path``."""

    loaded = load_settings(tmp_path / "configs" / "settings.yaml")
    home = tmp_path / "home"
    home.mkdir()
    dotfiles = tmp_path / "dotfiles"
    dotfiles.mkdir()
    paths = loaded.paths.model_copy(
        update={"logs_root": tmp_path / "logs", "home_dir": home, "dotfiles_root": dotfiles}
    )
    return loaded.model_copy(update={"paths": paths})


@pytest.fixture
def with_order(settings: AppSettings) -> Callable[[dict[str, list[str]]], AppSettings]:
    """Return a copy of ``settings`` with backend preference overrides."""

    def _with_order(order: dict[str, list[str]]) -> AppSettings:
        backends = settings.backends.model_copy(update={"order": order})
        return settings.model_copy(update={"backends": backends})

    return _with_order


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write an executable Python script standing in for a backend binary."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!{sys.executable}\n{textwrap.dedent(body)}", encoding="utf-8")
        path.chmod(0o755)
        return path

    return _make


class RecordingWhich:
    """``shutil.which`` stand-in that only knows the given tools and counts lookups."""

    def __init__(self, tools: dict[str, Path | str]) -> None:
        self.tools = {name: str(path) for name, path in tools.items()}
        self.calls: list[str] = []

    def __call__(self, name: str) -> str | None:
        self.calls.append(name)
        return self.tools.get(name)


@pytest.fixture
def fake_probe() -> Callable[..., tuple[ToolProbe, RecordingWhich]]:
    def _fake_probe(tools: dict[str, Path | str] | None = None) -> tuple[ToolProbe, RecordingWhich]:
        which = RecordingWhich(tools or {})
        return ToolProbe(which=which), which

    return _fake_probe


@pytest.fixture
def dispatcher_factory(settings: AppSettings, workdir: Path, fake_probe):
    def _factory(
        tools: dict[str, Path | str] | None = None,
        *,
        app_settings: AppSettings | None = None,
        registry=None,
    ) -> tuple[Dispatcher, RecordingWhich]:
        probe, which = fake_probe(tools)
        dispatcher = Dispatcher(
            app_settings or settings,
            probe=probe,
            registry=registry,
            workdir=workdir,
        )
        return dispatcher, which

    return _factory
