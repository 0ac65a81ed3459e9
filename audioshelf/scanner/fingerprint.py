"""Cheap, versioned file fingerprints and on-demand strong digests.

A fingerprint is derived from ``stat`` metadata only (size and modification
time); file content is never read.
Fingerprints carry a format tag; any difference between two fingerprints,
including a format change, means "content may have changed".

Catalogs written by older versions stored a bare SHA-256 hex digest instead.
Those are recognised by ``is_legacy_fingerprint`` and upgraded in place by the
reconciler without resetting progress.
"""

import hashlib
import os
import re
from dataclasses import dataclass
from pathlib import Path

from audioshelf.errors import FingerprintError

FINGERPRINT_PREFIX = "fs:v1:"
FINGERPRINT_DIGEST_LENGTH = 16
DIGEST_CHUNK_SIZE = 8192

_LEGACY_DIGEST_RE = re.compile(r"^[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class FileProbe:
    """Size and fingerprint of a file, taken from a single stat call."""

    size: int
    fingerprint: str


def fingerprint_from_stat(stat_result: os.stat_result) -> str:
    payload = f"{stat_result.st_size}:{stat_result.st_mtime_ns}".encode("ascii")
    digest = hashlib.sha256(payload).hexdigest()
    return FINGERPRINT_PREFIX + digest[:FINGERPRINT_DIGEST_LENGTH]


def probe_file(path: str | Path) -> FileProbe:
    """Stat a file (following symlinks) and derive its fingerprint."""
    try:
        stat_result = os.stat(path)
    except OSError as e:
        raise FingerprintError(path, e.strerror or str(e)) from e
    return FileProbe(size=stat_result.st_size, fingerprint=fingerprint_from_stat(stat_result))


def fingerprint(path: str | Path) -> str:
    return probe_file(path).fingerprint


def strong_digest(path: str | Path) -> str:
    """Stream the whole file through SHA-256 and return the hex digest."""
    hasher = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while chunk := f.read(DIGEST_CHUNK_SIZE):
                hasher.update(chunk)
    except OSError as e:
        raise FingerprintError(path, e.strerror or str(e)) from e
    return hasher.hexdigest()


def is_tagged_fingerprint(value: str | None) -> bool:
    return value is not None and value.startswith(FINGERPRINT_PREFIX)


def is_legacy_fingerprint(value: str | None) -> bool:
    return value is not None and _LEGACY_DIGEST_RE.match(value) is not None


def fingerprints_match(stored: str | None, fresh: str) -> bool:
    return stored == fresh
