"""
User session and persisted reader preferences

The session is passed explicitly to whatever needs the current user; only
highlight construction and scoped listing do.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from .utils.file_utils import atomic_write_text, safe_read_text_file

logger = logging.getLogger(__name__)


class UserSession:
    """Identity of the person using the reader"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id or None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def __repr__(self):
        return f"UserSession(user_id={self.user_id!r})"


class Preferences:
    """
    Boolean reader preferences, saved to JSON on every change when a path is set.

    is_private_activity: new highlights are private to their author
    show_others_highlight_list: the highlight list shows everyone's public highlights
    """

    FIELDS = ("is_private_activity", "show_others_highlight_list")

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._values = {name: False for name in self.FIELDS}
        self._load()

    def _load(self):
        if not self.path or not self.path.exists():
            return
        try:
            data = json.loads(safe_read_text_file(self.path))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return
        for name in self.FIELDS:
            if name in data:
                self._values[name] = bool(data[name])

    def _save(self):
        if not self.path:
            return
        try:
            atomic_write_text(self.path, json.dumps(self._values, indent=2))
        except OSError as e:
            logger.error(f"Error saving preferences to {self.path}: {e}")

    @property
    def is_private_activity(self) -> bool:
        return self._values["is_private_activity"]

    @is_private_activity.setter
    def is_private_activity(self, value: bool):
        self._values["is_private_activity"] = bool(value)
        self._save()

    @property
    def show_others_highlight_list(self) -> bool:
        return self._values["show_others_highlight_list"]

    @show_others_highlight_list.setter
    def show_others_highlight_list(self, value: bool):
        self._values["show_others_highlight_list"] = bool(value)
        self._save()
