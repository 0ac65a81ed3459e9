"""Data models for the catalog."""

from dataclasses import dataclass


@dataclass
class ScanRoot:
    """A user-registered directory that is scanned for audiobooks."""

    path: str
    created_at_unix: float
    last_scanned_at_unix: float | None = None


@dataclass
class Audiobook:
    """Represents an audiobook record."""

    id: int | None
    scan_root: str
    name: str
    full_path: str
    completeness: int = 0
    default_order: int = 0
    selected_file: str | None = None
    created_at_unix: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.completeness >= 100


@dataclass
class AudiobookFile:
    """Represents an audio file record with its playback progress."""

    id: int | None
    audiobook_id: int
    name: str
    full_path: str
    position: int
    length_ms: int | None = None
    seek_position_ms: int | None = None
    fingerprint: str | None = None
    completeness: int = 0
    file_exists: bool = True
    created_at_unix: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.completeness >= 100

    def calculate_completeness(self) -> int:
        """Percentage of the file played, derived from seek position and length."""
        if self.length_ms is None or self.seek_position_ms is None or self.length_ms <= 0:
            return 0
        percentage = (self.seek_position_ms * 100) // self.length_ms
        return max(0, min(100, percentage))
