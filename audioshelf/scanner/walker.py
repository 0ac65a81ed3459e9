"""Recursive, symlink-safe traversal of a scan root."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from audioshelf.config import AUDIO_EXTENSIONS
from audioshelf.errors import RootNotFoundError
from audioshelf.scanner.classifier import classify, normalize_extensions
from audioshelf.scanner.filesystem import absolute_path, directory_identity, display_name
from audioshelf.scanner.models import (
    DiscoveredAudiobook,
    EntryUnreadable,
    ScanResult,
)
from audioshelf.scanner.progress import ProgressReporter, ScanStats

logger = logging.getLogger(__name__)


class TreeWalker:
    """Walks a directory tree and collects every audiobook unit in it.

    Directories are visited depth-first in natural order of their names; a
    directory is reported as an audiobook before its own subdirectories.
    Symlinked directories are followed, but a directory whose canonical
    identity is already on the current path is never re-entered.
    """

    def __init__(
        self,
        audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
        max_workers: int = 8,
        max_path_length: int = 4096,
        progress: ProgressReporter | None = None,
    ):
        self.audio_extensions = normalize_extensions(audio_extensions)
        self.max_workers = max(1, max_workers)
        self.max_path_length = max_path_length
        self.progress = progress

    def walk(self, root: str | Path) -> ScanResult:
        root_path = absolute_path(root)
        if not root_path.is_dir():
            raise RootNotFoundError(root_path)

        logger.info("Walking %s", root_path)
        result = ScanResult(root=root_path)
        stats = ScanStats()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            self._walk_tree(root_path, executor, result, stats)

        if self.progress:
            self.progress.report_completion(stats)

        logger.info(
            "Walk of %s finished: %d audiobooks, %d files, %d directories, %d skipped",
            root_path,
            len(result.audiobooks),
            result.files_discovered,
            result.directories_scanned,
            len(result.unreadable),
        )
        return result

    def _walk_tree(
        self,
        root: Path,
        executor: ThreadPoolExecutor,
        result: ScanResult,
        stats: ScanStats,
    ) -> None:
        """Pre-order traversal driven by an explicit stack."""
        pending: list[tuple[Path, frozenset[tuple[int, int]]]] = [(root, frozenset())]
        while pending:
            directory, ancestors = pending.pop()
            children = self._visit(directory, ancestors, executor, result, stats)
            pending.extend(reversed(children))

    def _visit(
        self,
        directory: Path,
        ancestors: frozenset[tuple[int, int]],
        executor: ThreadPoolExecutor,
        result: ScanResult,
        stats: ScanStats,
    ) -> list[tuple[Path, frozenset[tuple[int, int]]]]:
        """Classify one directory; return its subdirectories with their ancestor set."""
        try:
            identity = directory_identity(directory)
        except OSError as e:
            self._skip(directory, e, result, stats)
            return []

        if identity in ancestors:
            logger.warning("Symlink cycle detected, not re-entering: %s", directory)
            result.cycles_skipped += 1
            return []

        try:
            classification = classify(
                directory,
                self.audio_extensions,
                self.max_path_length,
                map_fn=executor.map,
            )
        except OSError as e:
            self._skip(directory, e, result, stats)
            return []

        result.directories_scanned += 1
        result.unreadable.extend(classification.unreadable)
        stats.directories_scanned += 1
        stats.entries_skipped += len(classification.unreadable)

        if classification.is_audiobook:
            audiobook = DiscoveredAudiobook(
                path=directory,
                name=display_name(directory),
                files=classification.files,
            )
            result.audiobooks.append(audiobook)
            stats.audiobooks_found += 1
            stats.files_found += len(audiobook.files)
            stats.total_bytes += audiobook.total_bytes
            logger.debug("Audiobook %s: %d files", directory, len(audiobook.files))

        if self.progress:
            self.progress.report_if_needed(stats, str(directory))

        on_path = ancestors | {identity}
        return [(subdirectory, on_path) for subdirectory in classification.subdirectories]

    def _skip(
        self,
        directory: Path,
        error: OSError,
        result: ScanResult,
        stats: ScanStats,
    ) -> None:
        if isinstance(error, PermissionError):
            logger.warning("Permission denied listing directory: %s", directory)
        elif isinstance(error, FileNotFoundError):
            logger.warning("Directory disappeared during scan: %s", directory)
        else:
            logger.error("Error listing directory %s: %s", directory, error)
        result.unreadable.append(EntryUnreadable(directory, error.strerror or str(error)))
        stats.entries_skipped += 1


def scan_directory(
    root: str | Path,
    audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
    max_workers: int = 8,
) -> list[DiscoveredAudiobook]:
    """Discover every audiobook under ``root`` in deterministic order."""
    walker = TreeWalker(audio_extensions=audio_extensions, max_workers=max_workers)
    return walker.walk(root).audiobooks


async def scan_directory_async(
    root: str | Path,
    audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
    max_workers: int = 8,
) -> list[DiscoveredAudiobook]:
    """Run ``scan_directory`` in a worker thread for asyncio callers."""
    return await asyncio.to_thread(scan_directory, root, audio_extensions, max_workers)
