from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from authsession.logging import get_logger
from authsession.storage.errors import StorageError

logger = get_logger(__name__)


class FileStorage:
    """JSON file storage that survives process restarts.

    The whole key space lives in ``<root>/state/<name>.json`` and is rewritten
    on every mutation, so a crash mid-write never leaves a truncated document.
    """

    def __init__(self, root: str, *, name: str = "session") -> None:
        self.root = Path(root)
        self.name = name
        self._lock = threading.Lock()
        self._data: Dict[str, str] = self._load_state()

    def _state_path(self) -> Path:
        state_dir = self.root / "state"
        state_dir.mkdir(parents=True, exist_ok=True)
        return state_dir / f"{self.name}.json"

    def _load_state(self) -> Dict[str, str]:
        path = self._state_path()
        # Use try-except instead of exists() to avoid TOCTOU race condition
        try:
            raw = json.loads(path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("session_state_unreadable", path=str(path), error=str(exc))
            return {}
        if not isinstance(raw, dict):
            logger.warning("session_state_invalid", path=str(path), type=type(raw).__name__)
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _persist_state(self) -> None:
        path = self._state_path()
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{self.name}_", suffix=".tmp"
            )
            try:
                os.write(fd, json.dumps(self._data, indent=2).encode())
                os.fchmod(fd, 0o600)
            finally:
                os.close(fd)
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
            raise StorageError(
                f"failed to persist session state: {exc}", {"path": str(path)}
            ) from exc

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._persist_state()

    def remove(self, key: str) -> None:
        with self._lock:
            if key not in self._data:
                return
            del self._data[key]
            self._persist_state()
