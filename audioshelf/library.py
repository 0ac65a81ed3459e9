"""Library scanning: walk a root, then reconcile it into the catalog."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from audioshelf.config import ScannerConfig
from audioshelf.database import Catalog, Database, ScanRoot
from audioshelf.errors import RootNotFoundError, ScanRootError
from audioshelf.reconciler import ReconcileStats, Reconciler
from audioshelf.scanner.filesystem import absolute_path
from audioshelf.scanner.models import DiscoveredAudiobook, EntryUnreadable
from audioshelf.scanner.progress import ProgressReporter
from audioshelf.scanner.walker import TreeWalker

logger = logging.getLogger(__name__)


@dataclass
class ScanComplete:
    """Event handed to the presentation layer once a root has been merged."""

    root: Path
    audiobooks: list[DiscoveredAudiobook]
    stats: ReconcileStats
    unreadable: list[EntryUnreadable] = field(default_factory=list)

    @property
    def files_discovered(self) -> int:
        return sum(len(a.files) for a in self.audiobooks)


@dataclass
class ScanFailure:
    """A root that could not be scanned during ``scan_all``."""

    root: Path
    error: Exception


class LibraryScanner:
    """Scans registered roots and keeps the catalog in sync with them."""

    def __init__(
        self,
        db: Database,
        config: ScannerConfig | None = None,
        quiet: bool = False,
    ):
        self.config = config or ScannerConfig()
        self.catalog = Catalog(db)
        self.reconciler = Reconciler(self.catalog)
        self.walker = TreeWalker(
            audio_extensions=self.config.audio_extensions,
            max_workers=self.config.max_workers,
            max_path_length=self.config.max_path_length,
            progress=ProgressReporter(interval=self.config.progress_interval, quiet=quiet),
        )

    def add_root(self, path: str | Path) -> ScanComplete:
        """Register a directory and run its first scan."""
        root = self.catalog.add_scan_root(absolute_path(path))
        return self.scan_root(root.path)

    def remove_root(self, path: str | Path) -> None:
        self.catalog.remove_scan_root(absolute_path(path))

    def scan_root(self, path: str | Path) -> ScanComplete:
        """Walk one registered root and merge the result into the catalog.

        The catalog is only touched after the whole tree has been walked, so
        a RootNotFoundError or an interrupted walk leaves it unchanged.
        """
        root_path = absolute_path(path)
        if self.catalog.get_scan_root(root_path) is None:
            raise ScanRootError(f"Scan root is not registered: {root_path}")

        result = self.walker.walk(root_path)
        stats = self.reconciler.reconcile(root_path, result.audiobooks)

        return ScanComplete(
            root=root_path,
            audiobooks=result.audiobooks,
            stats=stats,
            unreadable=result.unreadable,
        )

    def scan_all(self) -> tuple[list[ScanComplete], list[ScanFailure]]:
        """Rescan every registered root; a missing root does not stop the others."""
        completed: list[ScanComplete] = []
        failures: list[ScanFailure] = []

        for root in self.roots():
            try:
                completed.append(self.scan_root(root.path))
            except RootNotFoundError as e:
                logger.error("Skipping root: %s", e)
                failures.append(ScanFailure(root=Path(root.path), error=e))

        return completed, failures

    def roots(self) -> list[ScanRoot]:
        return self.catalog.get_scan_roots()
