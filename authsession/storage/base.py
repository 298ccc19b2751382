from __future__ import annotations

from typing import Optional, Protocol


class SessionStorage(Protocol):
    """Durable string key/value storage backing a token store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...
