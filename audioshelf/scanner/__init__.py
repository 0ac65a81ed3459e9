"""Scanner module for audiobook discovery."""

from .classifier import Classification, DirectoryKind, classify, is_audio_file
from .fingerprint import fingerprint, is_legacy_fingerprint, strong_digest
from .models import DiscoveredAudiobook, DiscoveredFile, EntryUnreadable, ScanResult
from .natural_sort import natural_compare, natural_key, natural_sorted
from .progress import ProgressReporter
from .walker import TreeWalker, scan_directory, scan_directory_async

__all__ = [
    "TreeWalker",
    "scan_directory",
    "scan_directory_async",
    "classify",
    "Classification",
    "DirectoryKind",
    "is_audio_file",
    "fingerprint",
    "strong_digest",
    "is_legacy_fingerprint",
    "natural_key",
    "natural_compare",
    "natural_sorted",
    "DiscoveredAudiobook",
    "DiscoveredFile",
    "EntryUnreadable",
    "ScanResult",
    "ProgressReporter",
]
