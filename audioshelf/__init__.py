"""audioshelf - Audiobook library scanner that keeps a catalog in sync with disk."""

__version__ = "0.1.0"

from audioshelf.database import Catalog, Database
from audioshelf.library import LibraryScanner

__all__ = ["Database", "Catalog", "LibraryScanner"]
