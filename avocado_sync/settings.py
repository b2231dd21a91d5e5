"""Persistent settings for avocado-sync.

Holds the Readavocado token, the vault folder notes are written to, the sync
interval and last sync time, and the mapping from note path to
``[collection_id, cursor]``. Settings are stored as JSON and written
atomically so an interrupted save never leaves a half-written file.
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Union

from avocado_sync import config

log = logging.getLogger(__name__)

SETTINGS_PATH = config.CONFIG_DIR / "data.json"
LOCK_PATH = config.CONFIG_DIR / "sync.lock"

DEFAULT_TOKEN = "default"

CollectionId = Union[int, str]


def _defaults() -> Dict[str, Any]:
    return {
        "avocadoToken": DEFAULT_TOKEN,
        "rootFolder": "Avocado",
        "lastSyncTime": 0,
        "syncInterval": 60,
        "mapping": {},
    }


def _load_raw() -> Dict[str, Any]:
    """Return defaults with the persisted top-level keys merged over them."""
    data = _defaults()
    if not SETTINGS_PATH.exists():
        return data

    try:
        persisted = json.loads(SETTINGS_PATH.read_text())
    except (ValueError, UnicodeDecodeError):
        log.warning("Settings file %s is not valid JSON, using defaults", SETTINGS_PATH)
        return data

    if not isinstance(persisted, dict):
        log.warning("Settings file %s is not a JSON object, using defaults", SETTINGS_PATH)
        return data

    data.update(persisted)
    if not isinstance(data.get("mapping"), dict):
        data["mapping"] = {}
    return data


def _save_raw(data: Dict[str, Any]) -> None:
    """Write settings atomically: write to temp file, then rename."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=SETTINGS_PATH.parent, prefix=".data_", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp, SETTINGS_PATH)
    except BaseException:
        os.unlink(tmp)
        raise


class Settings:
    """Interface for reading and writing persisted sync settings."""

    def __init__(self) -> None:
        self._data = _load_raw()

    def save(self) -> None:
        _save_raw(self._data)

    def as_dict(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self._data))

    # -- Token --

    @property
    def token(self) -> str:
        return self._data["avocadoToken"]

    def set_token(self, token: str) -> None:
        self._data["avocadoToken"] = token

    @property
    def has_token(self) -> bool:
        return bool(self.token) and self.token != DEFAULT_TOKEN

    # -- Root folder --

    @property
    def root_folder(self) -> str:
        return self._data["rootFolder"]

    def set_root_folder(self, folder: str) -> None:
        """Point sync at a new vault folder.

        Notes in the old folder are no longer tracked, so the whole mapping
        is cleared and every collection is materialized again on next sync.
        """
        self._data["rootFolder"] = folder
        self._data["mapping"] = {}

    # -- Timing --

    @property
    def last_sync_time(self) -> int:
        return self._data["lastSyncTime"]

    @last_sync_time.setter
    def last_sync_time(self, millis: int) -> None:
        self._data["lastSyncTime"] = millis

    @property
    def sync_interval(self) -> int:
        """Minimum minutes between two sync passes."""
        return self._data["syncInterval"]

    @sync_interval.setter
    def sync_interval(self, minutes: int) -> None:
        self._data["syncInterval"] = minutes

    # -- Mapping --

    @property
    def mapping(self) -> Dict[str, List[Any]]:
        return self._data["mapping"]

    def has_mapping(self, note_key: str) -> bool:
        return note_key in self._data["mapping"]

    def add_mapping(self, note_key: str, collection_id: CollectionId) -> None:
        self._data["mapping"][note_key] = [collection_id, 1]

    def set_cursor(self, note_key: str, cursor: int) -> None:
        collection_id = self._data["mapping"][note_key][0]
        self._data["mapping"][note_key] = [collection_id, cursor]


def _try_create_lock() -> bool:
    """Attempt to create the lock file. Returns True if successful."""
    try:
        fd = os.open(LOCK_PATH, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        os.write(fd, str(os.getpid()).encode())
        os.close(fd)
        return True
    except FileExistsError:
        return False


def acquire_lock() -> bool:
    """Try to acquire the sync lock. Returns True if acquired, False if already held.

    If the lock is held by a dead process (stale lock), it is automatically
    removed and re-acquired.
    """
    if _try_create_lock():
        return True

    try:
        pid = int(LOCK_PATH.read_text().strip())
        os.kill(pid, 0)  # signal 0: check existence only
    except (ValueError, OSError):
        log.warning("Removing stale lock (previous process died)")
        try:
            LOCK_PATH.unlink()
        except FileNotFoundError:
            pass
        return _try_create_lock()

    return False


def release_lock() -> None:
    """Release the sync lock."""
    try:
        LOCK_PATH.unlink()
    except FileNotFoundError:
        pass
