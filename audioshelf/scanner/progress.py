"""Progress reporting utilities for scanning."""

import sys
import time
from dataclasses import dataclass, field


@dataclass
class ScanStats:
    """Statistics for an ongoing scan operation."""

    directories_scanned: int = 0
    audiobooks_found: int = 0
    files_found: int = 0
    entries_skipped: int = 0
    total_bytes: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time


class ProgressReporter:
    """Reports scan progress to the user."""

    def __init__(self, interval: int = 100, quiet: bool = False):
        self.interval = interval
        self.quiet = quiet
        self._last_report_count = 0

    def report_if_needed(self, stats: ScanStats, current_directory: str) -> None:
        if self.quiet:
            return
        if stats.directories_scanned - self._last_report_count >= self.interval:
            self._print_progress(stats, current_directory)
            self._last_report_count = stats.directories_scanned

    def report_completion(self, stats: ScanStats) -> None:
        if self.quiet:
            return
        duration = _format_duration(stats.elapsed_seconds)
        print(
            f"Scan complete: {stats.audiobooks_found:,} audiobooks, "
            f"{stats.files_found:,} files in {stats.directories_scanned:,} directories "
            f"({duration})",
            file=sys.stderr,
        )
        print(f"Total size: {format_bytes(stats.total_bytes)}", file=sys.stderr)
        if stats.entries_skipped:
            print(
                f"Warning: {stats.entries_skipped:,} unreadable entries were skipped",
                file=sys.stderr,
            )

    def _print_progress(self, stats: ScanStats, current_directory: str) -> None:
        print(
            f"[{stats.directories_scanned:,} dirs, {stats.audiobooks_found:,} audiobooks] "
            f"Scanning: {current_directory}",
            file=sys.stderr,
        )


def _format_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_bytes(size: int | None) -> str:
    if size is None:
        return "0 B"
    size_f = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_f < 1024:
            return f"{size_f:.2f} {unit}"
        size_f /= 1024
    return f"{size_f:.2f} PB"
