"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "VERBKIT_SETTINGS_FILE"

# zopfli is only worth its runtime on small archives.
FAST_COMPRESSOR_MAX_BYTES = 52_428_800
DEFAULT_GIT_COMPLETION_URL = (
    "https://raw.githubusercontent.com/git/git/v2.43.0/contrib/completion/git-completion.bash"
)

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class PathsConfig(BaseModel):
    """Filesystem locations used by logging and the bootstrap verb."""

    logs_root: Path = Path("~/.cache/verbkit/logs")
    home_dir: Path = Path("~")
    dotfiles_root: Path = Path(".")

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with user-relative and project-relative paths made absolute."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name).expanduser()
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class LoggingConfig(BaseModel):
    """Log levels for the file and console handlers."""

    level: LogLevelName = "INFO"
    console_level: LogLevelName = "ERROR"


class PolicyConfig(BaseModel):
    """Size thresholds attached to size-limited backends."""

    fast_compressor_max_bytes: int = Field(default=FAST_COMPRESSOR_MAX_BYTES, ge=1)


class ExecutionConfig(BaseModel):
    """Subprocess execution behavior shared by every backend invocation."""

    capture_stderr: bool = True
    stderr_tail_lines: int = Field(default=20, ge=0)
    inherit_stdout: bool = True
    terminate_grace_seconds: float = Field(default=5.0, ge=0.0)
    cert_connect_timeout_seconds: float = Field(default=10.0, gt=0.0)
    bind_children_to_parent: bool = True


class BackendsConfig(BaseModel):
    """Per-group overrides of the candidate preference order."""

    order: dict[str, list[str]] = Field(default_factory=dict)


class BootstrapConfig(BaseModel):
    """Home-directory bootstrap settings."""

    branch: str = "main"
    pull: bool = True
    git_completion_url: str = DEFAULT_GIT_COMPLETION_URL
    exclude: list[str] = Field(default_factory=lambda: [".git", ".DS_Store"])


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    backends: BackendsConfig = Field(default_factory=BackendsConfig)
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)

    model_config = SettingsConfigDict(
        env_prefix="VERBKIT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / DEFAULT_SETTINGS_FILE).exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value).expanduser()
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides.

    A missing settings file is not an error; built-in defaults apply.
    """

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    resolved_paths = settings.paths.resolved(project_root=project_root)
    return settings.model_copy(update={"paths": resolved_paths})
