"""Transient structures produced by a single scan pass."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class DiscoveredFile:
    """An audio file found inside an audiobook directory."""

    path: Path
    name: str
    fingerprint: str
    size: int


@dataclass
class DiscoveredAudiobook:
    """A directory that directly contains audio, with its files in natural order."""

    path: Path
    name: str
    files: list[DiscoveredFile] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(f.size for f in self.files)


@dataclass(frozen=True)
class EntryUnreadable:
    """A filesystem entry skipped because it could not be listed or stat'ed."""

    path: Path
    reason: str


@dataclass
class ScanResult:
    """Everything one walk of a scan root produced."""

    root: Path
    audiobooks: list[DiscoveredAudiobook] = field(default_factory=list)
    unreadable: list[EntryUnreadable] = field(default_factory=list)
    directories_scanned: int = 0
    cycles_skipped: int = 0

    @property
    def files_discovered(self) -> int:
        return sum(len(a.files) for a in self.audiobooks)

    @property
    def total_bytes(self) -> int:
        return sum(a.total_bytes for a in self.audiobooks)
