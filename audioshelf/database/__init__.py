"""Database module for audioshelf."""

from .catalog import Catalog
from .connection import Database
from .models import Audiobook, AudiobookFile, ScanRoot
from .schema import create_schema

__all__ = [
    "Database",
    "Catalog",
    "create_schema",
    "ScanRoot",
    "Audiobook",
    "AudiobookFile",
]
