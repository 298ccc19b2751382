from __future__ import annotations

from enum import Enum
from typing import Optional

from authsession.logging import get_logger
from authsession.portal import LoggingNavigator, Navigator, PortalContext
from authsession.storage.errors import StorageError
from authsession.tokens import TokenStore

logger = get_logger(__name__)


class RecoveryAction(str, Enum):
    """What to do with a response before handing it back to the caller."""

    PASS_THROUGH = "pass_through"
    IGNORE = "ignore"
    REFRESH = "refresh"
    NO_SESSION = "no_session"


def decide(status_code: int, *, retried: bool, has_refresh_token: bool) -> RecoveryAction:
    """Pick the recovery action for a response.

    Only 401 is a session problem. 403 means authenticated but not allowed,
    which a new token cannot fix, so it passes through like any other status.
    """
    if status_code != 401:
        return RecoveryAction.PASS_THROUGH
    if retried:
        return RecoveryAction.IGNORE
    if has_refresh_token:
        return RecoveryAction.REFRESH
    return RecoveryAction.NO_SESSION


class RecoveryPolicy:
    """Per-session recovery decisions plus the terminal logout redirect."""

    def __init__(
        self,
        token_store: TokenStore,
        *,
        navigator: Optional[Navigator] = None,
        portal_context: Optional[PortalContext] = None,
    ) -> None:
        self.token_store = token_store
        self.navigator: Navigator = navigator or LoggingNavigator()
        self.portal_context = portal_context or PortalContext()

    def decide(self, status_code: int, *, retried: bool) -> RecoveryAction:
        return decide(
            status_code,
            retried=retried,
            has_refresh_token=bool(self.token_store.get_refresh_token()),
        )

    def redirect_to_login(self, reason: str) -> str:
        """Send the user to the login screen of the portal they are in."""
        portal = self.portal_context.resolve()
        login_path = portal.login_path
        logger.warning(
            "session_terminated",
            reason=reason,
            portal=portal.value,
            redirect=login_path,
        )
        try:
            self.navigator.navigate(login_path)
        except Exception as exc:
            # The caller still gets its session error even if navigation fails
            logger.error("session_redirect_failed", redirect=login_path, error=str(exc))
        return login_path

    def terminate_session(self, reason: str) -> str:
        try:
            self.token_store.clear_tokens()
        except StorageError as exc:
            logger.error("session_clear_failed", reason=reason, error=exc.message)
        return self.redirect_to_login(reason)
