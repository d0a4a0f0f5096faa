"""
Persisted local key/value store.

The desktop counterpart of browser localStorage: a flat string-keyed map
written to a JSON file so that values survive a restart of the client.
Only small coordination flags live here. Sessions are persisted by the
Supabase client itself and credentials are never written.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LocalStore:
    """
    JSON-file backed key/value store.

    Every mutation rewrites the file through a temporary file and an atomic
    rename, so a crash mid-write leaves the previous contents intact. An
    unwritable file never fails a mutation; values then last until exit.
    Passing ``path=None`` gives a purely in-memory store.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # A corrupt store is discarded: it only ever holds flags.
            logger.warning(f"Discarding unreadable local store {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Discarding malformed local store {self._path}")
            return {}
        return data

    def _flush(self) -> None:
        """
        Write the current values to disk.

        A failed write is logged and the in-memory values stay
        authoritative for the rest of the run.
        """
        if self._path is None:
            return
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self._data, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.warning(f"Could not write local store {self._path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def get_flag(self, key: str) -> bool:
        """Read a boolean flag; anything but a stored ``True`` is false."""
        return self._data.get(key) is True

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, *keys: str) -> None:
        changed = False
        for key in keys:
            if key in self._data:
                del self._data[key]
                changed = True
        if changed:
            self._flush()

    def keys(self) -> list[str]:
        return sorted(self._data)

    def clear(self) -> None:
        """Remove every key, including ones written by other components."""
        self._data = {}
        self._flush()
