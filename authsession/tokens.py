from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Optional

from authsession.logging import get_logger
from authsession.storage.base import SessionStorage
from authsession.storage.memory import MemoryStorage

logger = get_logger(__name__)

# Storage key names are shared with existing browser/app sessions; do not rename.
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"
BUSINESS_KEY = "business"

SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY, BUSINESS_KEY)


@dataclass(frozen=True)
class TokenPair:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class TokenStore:
    """Holder of one session's access/refresh token pair.

    Reads come from memory; every write goes straight through to ``storage``.
    The in-memory pair is loaded from storage once, at construction, so a
    restarted process picks up where the previous one stopped.
    """

    def __init__(self, storage: Optional[SessionStorage] = None) -> None:
        self.storage: SessionStorage = storage if storage is not None else MemoryStorage()
        self._lock = threading.RLock()
        self._access_token: Optional[str] = self.storage.get(ACCESS_TOKEN_KEY)
        self._refresh_token: Optional[str] = self.storage.get(REFRESH_TOKEN_KEY)

    @property
    def tokens(self) -> TokenPair:
        with self._lock:
            return TokenPair(self._access_token, self._refresh_token)

    def get_access_token(self) -> Optional[str]:
        return self._access_token

    def get_refresh_token(self) -> Optional[str]:
        return self._refresh_token

    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    def set_tokens(self, access: str, refresh: str) -> None:
        with self._lock:
            self._access_token = access
            self._refresh_token = refresh
            self.storage.set(ACCESS_TOKEN_KEY, access)
            self.storage.set(REFRESH_TOKEN_KEY, refresh)
        logger.debug("tokens_stored", access_token=access)

    def clear_tokens(self) -> None:
        """Drop both tokens and every cached profile blob."""
        with self._lock:
            self._access_token = None
            self._refresh_token = None
            for key in SESSION_KEYS:
                self.storage.remove(key)
        logger.debug("tokens_cleared")

    # Cached profile state, cleared together with the tokens

    def _get_json(self, key: str) -> Optional[dict[str, Any]]:
        raw = self.storage.get(key)
        if not raw:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("session_blob_unreadable", key=key)
            return None
        return value if isinstance(value, dict) else None

    def set_user(self, user: dict[str, Any]) -> None:
        with self._lock:
            self.storage.set(USER_KEY, json.dumps(user))

    def get_stored_user(self) -> Optional[dict[str, Any]]:
        return self._get_json(USER_KEY)

    def set_business(self, business: dict[str, Any]) -> None:
        with self._lock:
            self.storage.set(BUSINESS_KEY, json.dumps(business))

    def get_stored_business(self) -> Optional[dict[str, Any]]:
        return self._get_json(BUSINESS_KEY)
