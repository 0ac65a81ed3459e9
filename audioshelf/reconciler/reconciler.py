"""Merges a fresh scan result into the persisted catalog."""

import logging
from dataclasses import dataclass
from pathlib import Path

from audioshelf.database.catalog import Catalog
from audioshelf.database.models import Audiobook, AudiobookFile
from audioshelf.scanner.fingerprint import fingerprints_match, is_legacy_fingerprint
from audioshelf.scanner.models import DiscoveredAudiobook, DiscoveredFile

logger = logging.getLogger(__name__)


@dataclass
class ReconcileStats:
    """Counts of what a reconciliation pass changed."""

    audiobooks_inserted: int = 0
    audiobooks_missing: int = 0
    files_inserted: int = 0
    files_unchanged: int = 0
    files_changed: int = 0
    files_migrated: int = 0
    files_restored: int = 0
    files_missing: int = 0

    @property
    def files_seen(self) -> int:
        return self.files_inserted + self.files_unchanged + self.files_changed + self.files_migrated


class Reconciler:
    """Applies one root's scan result to the catalog without losing progress.

    Files are matched by absolute path within their audiobook. A stored
    fingerprint that differs from the fresh one clears the file's progress.
    Legacy digests are upgraded to the tagged format without a reset.
    Files that were not rediscovered are flagged as missing and keep their
    progress until they reappear.

    All mutations of one pass run inside a single catalog transaction.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def reconcile(
        self,
        root: str | Path,
        audiobooks: list[DiscoveredAudiobook],
    ) -> ReconcileStats:
        root_path = str(root)
        stats = ReconcileStats()

        with self.catalog.transaction():
            seen_ids: set[int] = set()
            for order, discovered in enumerate(audiobooks):
                audiobook_id = self._resolve_audiobook(root_path, order, discovered, stats)
                seen_ids.add(audiobook_id)
                if self._reconcile_files(audiobook_id, discovered.files, stats):
                    self._refresh_completeness(audiobook_id)

            for audiobook in self.catalog.get_audiobooks_by_root(root_path):
                if audiobook.id is None or audiobook.id in seen_ids:
                    continue
                missing = self.catalog.mark_audiobook_files_missing(audiobook.id)
                if missing:
                    logger.info("Audiobook no longer found on disk: %s", audiobook.full_path)
                    stats.audiobooks_missing += 1
                    stats.files_missing += missing

            self.catalog.mark_root_scanned(root_path)

        logger.info(
            "Reconciled %s: %d new audiobooks, %d new files, %d changed, "
            "%d migrated, %d restored, %d missing",
            root_path,
            stats.audiobooks_inserted,
            stats.files_inserted,
            stats.files_changed,
            stats.files_migrated,
            stats.files_restored,
            stats.files_missing,
        )
        return stats

    def _resolve_audiobook(
        self,
        root: str,
        order: int,
        discovered: DiscoveredAudiobook,
        stats: ReconcileStats,
    ) -> int:
        existing = self.catalog.get_audiobook_by_path(discovered.path)
        if existing is not None and existing.id is not None:
            return existing.id

        audiobook = Audiobook(
            id=None,
            scan_root=root,
            name=discovered.name,
            full_path=str(discovered.path),
            default_order=order,
        )
        audiobook_id = self.catalog.insert_audiobook(audiobook)
        stats.audiobooks_inserted += 1
        logger.debug("New audiobook %d: %s", audiobook_id, discovered.path)
        return audiobook_id

    def _reconcile_files(
        self,
        audiobook_id: int,
        files: list[DiscoveredFile],
        stats: ReconcileStats,
    ) -> bool:
        """Merge one audiobook's files; return True if any file changed state."""
        stored = {f.full_path: f for f in self.catalog.get_audiobook_files(audiobook_id)}
        touched = False

        for position, discovered in enumerate(files):
            existing = stored.pop(str(discovered.path), None)
            if existing is None:
                self._insert_file(audiobook_id, position, discovered)
                stats.files_inserted += 1
                touched = True
            elif self._update_file(existing, position, discovered, stats):
                touched = True

        for vanished in stored.values():
            if vanished.file_exists and vanished.id is not None:
                self.catalog.set_file_exists(vanished.id, False)
                stats.files_missing += 1
                touched = True
                logger.debug("File missing: %s", vanished.full_path)

        return touched

    def _insert_file(self, audiobook_id: int, position: int, discovered: DiscoveredFile) -> None:
        self.catalog.insert_file(
            AudiobookFile(
                id=None,
                audiobook_id=audiobook_id,
                name=discovered.name,
                full_path=str(discovered.path),
                position=position,
                fingerprint=discovered.fingerprint,
            )
        )

    def _update_file(
        self,
        existing: AudiobookFile,
        position: int,
        discovered: DiscoveredFile,
        stats: ReconcileStats,
    ) -> bool:
        assert existing.id is not None
        touched = False

        if existing.fingerprint is None or is_legacy_fingerprint(existing.fingerprint):
            self.catalog.update_file_fingerprint(existing.id, discovered.fingerprint)
            stats.files_migrated += 1
            logger.debug("Upgraded fingerprint of %s", existing.full_path)
        elif fingerprints_match(existing.fingerprint, discovered.fingerprint):
            stats.files_unchanged += 1
        else:
            self.catalog.update_file_fingerprint(existing.id, discovered.fingerprint)
            self.catalog.reset_file_progress(existing.id)
            stats.files_changed += 1
            touched = True
            logger.info("Content changed, progress reset: %s", existing.full_path)

        if not existing.file_exists:
            self.catalog.set_file_exists(existing.id, True)
            stats.files_restored += 1
            touched = True

        if existing.position != position or existing.name != discovered.name:
            self.catalog.update_file_placement(existing.id, discovered.name, position)

        return touched

    def _refresh_completeness(self, audiobook_id: int) -> None:
        present = [f for f in self.catalog.get_audiobook_files(audiobook_id) if f.file_exists]
        if not present:
            return
        completeness = sum(f.completeness for f in present) // len(present)
        self.catalog.update_audiobook_completeness(audiobook_id, completeness)
