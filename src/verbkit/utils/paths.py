"""Path and filesystem helper functions."""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from uuid import uuid4


def atomic_temp_path(target_path: Path) -> Path:
    """Return a unique hidden sibling of ``target_path`` that keeps its suffix.

    Backends such as ffmpeg and ImageMagick pick the output format from the
    extension, so the original file name stays at the end.
    """

    return target_path.parent / f".{uuid4().hex}.{target_path.name}"


def remove_path(path: Path) -> None:
    """Remove a file or directory tree if it exists."""

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


@contextmanager
def scoped_directory(prefix: str = "verbkit-") -> Iterator[Path]:
    """Yield a private scratch directory that is removed on every exit path."""

    with tempfile.TemporaryDirectory(prefix=prefix) as scratch:
        yield Path(scratch)


def copy_file_atomically(source: Path, target: Path) -> Path:
    """Copy ``source`` over ``target`` via a temporary sibling and ``os.replace``."""

    temp_path = atomic_temp_path(target)
    try:
        shutil.copy2(source, temp_path)
        os.replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return target
