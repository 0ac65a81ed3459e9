"""Decides whether a directory is an audiobook unit or a container."""

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from audioshelf.config import AUDIO_EXTENSIONS
from audioshelf.errors import FingerprintError
from audioshelf.scanner.fingerprint import FileProbe, probe_file
from audioshelf.scanner.filesystem import is_hidden, parse_filename
from audioshelf.scanner.models import DiscoveredFile, EntryUnreadable
from audioshelf.scanner.natural_sort import natural_sorted

logger = logging.getLogger(__name__)


class DirectoryKind(Enum):
    """Outcome of classifying a directory."""

    AUDIOBOOK = "audiobook"
    CONTAINER = "container"


@dataclass
class Classification:
    """Result of classifying one directory.

    ``files`` holds the playable audio files in natural order (empty for a
    container). ``subdirectories`` are returned for both kinds, since a book
    directory may still hold disc folders that are audiobooks of their own.
    """

    directory: Path
    kind: DirectoryKind
    files: list[DiscoveredFile] = field(default_factory=list)
    subdirectories: list[Path] = field(default_factory=list)
    unreadable: list[EntryUnreadable] = field(default_factory=list)

    @property
    def is_audiobook(self) -> bool:
        return self.kind is DirectoryKind.AUDIOBOOK


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    return frozenset(ext.lower().lstrip(".") for ext in extensions)


def is_audio_file(filename: str, audio_extensions: frozenset[str] = AUDIO_EXTENSIONS) -> bool:
    """Check if a filename is a visible file with a recognised audio extension."""
    if is_hidden(filename):
        return False
    extension = parse_filename(filename).extension
    return extension is not None and extension in audio_extensions


def classify(
    directory: Path,
    audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
    max_path_length: int = 4096,
    map_fn: Callable[..., Iterable] = map,
) -> Classification:
    """Classify a directory by its direct children.

    Raises OSError when the directory itself cannot be listed; problems with
    individual entries are collected in ``Classification.unreadable``.
    ``map_fn`` runs the per-file stat calls and must preserve input order,
    e.g. the builtin ``map`` or ``ThreadPoolExecutor.map``.
    """
    candidates, subdirectories, unreadable = _list_entries(
        directory, audio_extensions, max_path_length
    )

    files: list[DiscoveredFile] = []
    for candidate, outcome in zip(candidates, map_fn(_probe_candidate, candidates)):
        if isinstance(outcome, EntryUnreadable):
            unreadable.append(outcome)
            continue
        if outcome.size == 0:
            logger.debug("Skipping zero-byte file: %s", candidate)
            continue
        files.append(
            DiscoveredFile(
                path=candidate,
                name=candidate.name,
                fingerprint=outcome.fingerprint,
                size=outcome.size,
            )
        )

    kind = DirectoryKind.AUDIOBOOK if files else DirectoryKind.CONTAINER
    return Classification(
        directory=directory,
        kind=kind,
        files=files,
        subdirectories=subdirectories,
        unreadable=unreadable,
    )


def _list_entries(
    directory: Path,
    audio_extensions: frozenset[str],
    max_path_length: int,
) -> tuple[list[Path], list[Path], list[EntryUnreadable]]:
    candidates: list[Path] = []
    subdirectories: list[Path] = []
    unreadable: list[EntryUnreadable] = []

    with os.scandir(directory) as entries:
        listing = list(entries)

    for entry in listing:
        if is_hidden(entry.name):
            continue

        if not _is_decodable(entry.name):
            logger.warning("Undecodable name, skipping: %r", entry.path)
            unreadable.append(EntryUnreadable(Path(entry.path), "undecodable name"))
            continue

        try:
            if entry.is_dir():
                subdirectories.append(Path(entry.path))
                continue
            if not entry.is_file():
                continue
        except OSError as e:
            logger.warning("Cannot inspect %s: %s", entry.path, e)
            unreadable.append(EntryUnreadable(Path(entry.path), str(e)))
            continue

        if not is_audio_file(entry.name, audio_extensions):
            continue

        if len(entry.path) > max_path_length:
            logger.warning("Path too long, skipping: %s", entry.path)
            unreadable.append(EntryUnreadable(Path(entry.path), "path too long"))
            continue

        candidates.append(Path(entry.path))

    return (
        natural_sorted(candidates, key=lambda p: p.name),
        natural_sorted(subdirectories, key=lambda p: p.name),
        unreadable,
    )


def _is_decodable(name: str) -> bool:
    """False for names that only survived ``os.fsdecode`` as surrogate escapes."""
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _probe_candidate(path: Path) -> FileProbe | EntryUnreadable:
    try:
        return probe_file(path)
    except FingerprintError as e:
        if isinstance(e.__cause__, FileNotFoundError):
            logger.warning("File disappeared during scan: %s", path)
        else:
            logger.warning("Cannot fingerprint %s: %s", path, e.reason)
        return EntryUnreadable(path, e.reason)
