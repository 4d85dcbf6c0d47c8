"""Shared utility helpers."""

from verbkit.utils.paths import atomic_temp_path, copy_file_atomically, remove_path, scoped_directory

__all__ = [
    "atomic_temp_path",
    "copy_file_atomically",
    "remove_path",
    "scoped_directory",
]
