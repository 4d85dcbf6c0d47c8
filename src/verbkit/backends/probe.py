"""Executable availability probe with a process-lifetime cache."""

from __future__ import annotations

import logging
import shutil
from typing import Callable, Iterable

LOGGER = logging.getLogger(__name__)

WhichFunction = Callable[[str], "str | None"]


class ToolProbe:
    """Look up candidate executables on ``PATH`` once per name.

    Each name is written to the cache at most once; later lookups only read,
    so a populated probe can be shared across threads.
    """

    def __init__(self, which: WhichFunction = shutil.which, logger: logging.Logger | None = None) -> None:
        self._which = which
        self._logger = logger or LOGGER
        self._paths: dict[str, str | None] = {}

    def resolve(self, name: str) -> str | None:
        """Return the absolute path of ``name`` or None when it is not installed."""

        if name not in self._paths:
            found = self._which(name)
            self._paths.setdefault(name, found)
            self._logger.debug("probe.lookup name=%s path=%s", name, found)
        return self._paths[name]

    def probe(self, names: Iterable[str]) -> dict[str, bool]:
        """Return availability for every requested name."""

        return {name: self.resolve(name) is not None for name in names}

    def cached(self) -> dict[str, bool]:
        return {name: path is not None for name, path in sorted(self._paths.items())}


_DEFAULT_PROBE: ToolProbe | None = None


def default_probe() -> ToolProbe:
    """Return the probe shared by every dispatcher in this process."""

    global _DEFAULT_PROBE
    if _DEFAULT_PROBE is None:
        _DEFAULT_PROBE = ToolProbe()
    return _DEFAULT_PROBE
