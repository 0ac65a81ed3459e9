"""Configuration module for audioshelf."""

from dataclasses import dataclass, field
from pathlib import Path

AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {
        "mp3",
        "m4a",
        "m4b",
        "ogg",
        "flac",
        "opus",
        "aac",
        "wav",
        "wma",
    }
)


def _get_project_root() -> Path:
    return Path(__file__).parent.parent


@dataclass
class ScannerConfig:
    progress_interval: int = 100
    max_path_length: int = 4096
    max_workers: int = 8
    audio_extensions: frozenset[str] = AUDIO_EXTENSIONS


@dataclass
class Config:
    database_path: Path = field(default_factory=lambda: _get_project_root() / "data" / "catalog.db")
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
