from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Protocol

from authsession.logging import get_logger
from authsession.tokens import TokenStore

logger = get_logger(__name__)


class Portal(str, Enum):
    """Areas of the application, each with its own login screen."""

    ADMIN = "admin"
    BUSINESS = "business"
    CUSTOMER = "customer"
    DEFAULT = "default"

    @property
    def login_path(self) -> str:
        if self is Portal.DEFAULT:
            return "/login"
        return f"/{self.value}/login"


# Checked in order; the first marker contained in the path wins
_PORTAL_MARKERS = (
    ("/admin", Portal.ADMIN),
    ("/business", Portal.BUSINESS),
    ("/customer", Portal.CUSTOMER),
)


def portal_for_path(path: Optional[str]) -> Portal:
    """Infer the portal from a navigation path."""
    if not path:
        return Portal.DEFAULT
    for marker, portal in _PORTAL_MARKERS:
        if marker in path:
            return portal
    return Portal.DEFAULT


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class LoggingNavigator:
    """Navigator for headless use: records and logs every redirect."""

    def __init__(self) -> None:
        self.history: List[str] = []

    @property
    def current(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate(self, path: str) -> None:
        self.history.append(path)
        logger.info("session_redirect", location=path)


class PortalContext:
    """Resolves which portal the user is in when the session is lost.

    A fixed ``portal`` always wins. Otherwise ``location`` is asked for the
    current path and the portal is inferred from it.
    """

    def __init__(
        self,
        portal: Optional[Portal] = None,
        *,
        location: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        self.portal = Portal(portal) if portal is not None else None
        self.location = location

    def resolve(self) -> Portal:
        if self.portal is not None:
            return self.portal
        if self.location is not None:
            return portal_for_path(self.location())
        return Portal.DEFAULT


def guard_route(
    path: str,
    token_store: TokenStore,
    required_role: Optional[str] = None,
) -> Optional[str]:
    """Return where to redirect before rendering ``path``, or None to allow it.

    Without an access token the user goes to the login screen of the portal
    the path belongs to (``/`` outside any portal). With a token but without
    ``required_role`` the admin area sends them to its login and every other
    area back to ``/``.
    """
    if not token_store.get_access_token():
        if path.startswith("/business/"):
            return Portal.BUSINESS.login_path
        if path.startswith("/customer/"):
            return Portal.CUSTOMER.login_path
        if path.startswith("/admin/"):
            return Portal.ADMIN.login_path
        return "/"

    if required_role:
        user = token_store.get_stored_user() or {}
        roles = user.get("roles") or []
        if required_role not in roles:
            if path.startswith("/admin/"):
                return Portal.ADMIN.login_path
            return "/"

    return None
