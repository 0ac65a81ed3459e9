"""Exception types shared across the scanner, reconciler and catalog."""

from pathlib import Path


class AudioshelfError(Exception):
    """Base exception for all audioshelf errors."""


class ScanError(AudioshelfError):
    """Raised when a scan of a root cannot be carried out."""


class RootNotFoundError(ScanError):
    """Raised when a scan root is missing or is not a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        super().__init__(f"Scan root not found or not a directory: {root}")


class FingerprintError(AudioshelfError):
    """Raised when a file cannot be stat'ed or read for fingerprinting."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot fingerprint {path}: {reason}")


class PersistenceError(AudioshelfError):
    """Raised when a catalog operation fails; the transaction is rolled back."""


class ScanRootError(AudioshelfError):
    """Raised for invalid scan root registration or removal."""
