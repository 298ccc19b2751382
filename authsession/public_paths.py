from __future__ import annotations

from typing import Iterable, Tuple, Union

import httpx

# Endpoints reachable without a session. A stale token sent here must not
# start refresh or 401 handling, so they never carry the bearer header.
DEFAULT_PUBLIC_PATHS: Tuple[str, ...] = (
    "/api/auth/login",
    "/api/auth/signup",
    "/api/auth/verify-email",
    "/api/auth/resend-verification",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
)


class PublicPathClassifier:
    """Substring matcher over an ordered set of public endpoint paths."""

    def __init__(self, paths: Iterable[str] = DEFAULT_PUBLIC_PATHS) -> None:
        seen: dict[str, None] = {}
        for path in paths:
            path = path.strip()
            if path:
                seen.setdefault(path, None)
        self.paths: Tuple[str, ...] = tuple(seen)

    def is_public(self, target: Union[str, httpx.URL, None]) -> bool:
        if target is None:
            return False
        if isinstance(target, httpx.URL):
            target = target.raw_path.decode("ascii", errors="replace")
        return any(path in target for path in self.paths)
