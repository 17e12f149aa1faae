"""Default locations and sizes used by the reader, CLI and store."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _default_home() -> Path:
    return Path.home() / ".highlight_reader"


@dataclass
class ReaderConfig:
    """Configuration for the highlight reader."""

    # Where state files live unless overridden
    home: Path = field(default_factory=_default_home)
    store_file: Optional[Path] = None
    preferences_file: Optional[Path] = None

    # Cover thumbnail box, portrait 0.7 aspect
    thumbnail_width: float = 400.0
    thumbnail_height: float = 400.0 / 0.7
    thumbnail_dirname: str = "thumbnails"

    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @property
    def store_path(self) -> Path:
        return self.store_file or self.home / "highlights.json"

    @property
    def preferences_path(self) -> Path:
        return self.preferences_file or self.home / "preferences.json"

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        """
        Build a config honoring HIGHLIGHT_READER_HOME, HIGHLIGHT_READER_STORE
        and HIGHLIGHT_READER_PREFS.
        """
        config = cls()
        home = os.environ.get("HIGHLIGHT_READER_HOME")
        if home:
            config.home = Path(home)
        store = os.environ.get("HIGHLIGHT_READER_STORE")
        if store:
            config.store_file = Path(store)
        prefs = os.environ.get("HIGHLIGHT_READER_PREFS")
        if prefs:
            config.preferences_file = Path(prefs)
        return config


# Global configuration instance
CONFIG = ReaderConfig()
