"""Filesystem helpers shared by the classifier and the walker."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class ParsedFilename:
    """Parsed components of a filename."""

    full: str
    base: str
    extension: str | None


def parse_filename(filename: str) -> ParsedFilename:
    if not filename:
        return ParsedFilename(full=filename, base=filename, extension=None)

    dot_index = filename.rfind(".")

    if dot_index <= 0 or dot_index == len(filename) - 1:
        return ParsedFilename(full=filename, base=filename.rstrip("."), extension=None)

    extension = filename[dot_index + 1 :].lower()
    base = filename[:dot_index]

    return ParsedFilename(full=filename, base=base, extension=extension)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def absolute_path(path: str | Path) -> Path:
    """Make a path absolute and normalized without resolving symlinks."""
    return Path(os.path.abspath(os.fspath(path)))


def directory_identity(path: Path) -> tuple[int, int]:
    """Canonical identity of a directory, the same for every symlink pointing at it."""
    stat_result = os.stat(path)
    return stat_result.st_dev, stat_result.st_ino


def display_name(directory: Path) -> str:
    return directory.name or str(directory)
