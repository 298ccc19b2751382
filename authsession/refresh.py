"""Single-flight token refresh.

Any number of requests may discover at the same moment that the access token
has expired. Only the first of them talks to the refresh endpoint; the others
park on a future and are woken with the outcome of that one call.

The check-and-set of ``is_refreshing`` happens before the first ``await`` in
``RefreshCoordinator.refresh``, which makes it atomic on a single event loop.
A coordinator must not be shared between event loops or threads.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from authsession.errors import RefreshFailedError
from authsession.logging import get_logger
from authsession.storage.errors import StorageError
from authsession.tokens import TokenPair, TokenStore

logger = get_logger(__name__)

RefreshCall = Callable[[str], Awaitable[TokenPair]]
SessionLostCallback = Callable[[str], object]

DEFAULT_REFRESH_TIMEOUT_SECONDS = 30.0


class RefreshCoordinator:
    """Owns the refresh state of one session.

    Args:
        token_store: Session credentials; committed on success, cleared on failure.
        refresh_call: Coroutine exchanging a refresh token for a new pair.
        on_session_lost: Invoked once per failed refresh, after state is reset,
            with a short reason string.
        timeout: Upper bound in seconds for the refresh call; ``None`` waits
            for the transport's own timeout.
    """

    def __init__(
        self,
        token_store: TokenStore,
        refresh_call: RefreshCall,
        *,
        on_session_lost: Optional[SessionLostCallback] = None,
        timeout: Optional[float] = DEFAULT_REFRESH_TIMEOUT_SECONDS,
    ) -> None:
        self.token_store = token_store
        self._refresh_call = refresh_call
        self._on_session_lost = on_session_lost
        self.timeout = timeout
        self.is_refreshing = False
        self._subscribers: List[asyncio.Future[str]] = []
        # Number of refresh calls actually issued
        self.refresh_count = 0

    @property
    def subscribers(self) -> tuple[asyncio.Future[str], ...]:
        return tuple(self._subscribers)

    async def refresh(self) -> str:
        """Return a new access token, issuing at most one refresh call at a time.

        Raises:
            RefreshFailedError: the in-flight refresh failed or was cancelled,
                or its token pair could not be stored. Tokens are cleared
                unless the refresh was cancelled.
        """
        if self.is_refreshing:
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._subscribers.append(future)
            logger.info("refresh_queued", waiting=len(self._subscribers))
            return await future

        self.is_refreshing = True
        try:
            pair = await self._perform_refresh()
        except RefreshFailedError as exc:
            self._fail(self._take_waiters(), exc)
            raise
        except BaseException:
            # The refreshing task itself was cancelled or interrupted
            self._reject(self._take_waiters(), RefreshFailedError("token refresh cancelled"))
            raise

        waiters = self._take_waiters()
        try:
            self.token_store.set_tokens(pair.access_token, pair.refresh_token)  # type: ignore[arg-type]
        except StorageError as exc:
            error = RefreshFailedError(f"could not store refreshed tokens: {exc.message}")
            error.__cause__ = exc
            self._fail(waiters, error)
            raise error from exc
        logger.info("refresh_succeeded", resumed=len(waiters))
        for future in waiters:
            if not future.done():
                future.set_result(pair.access_token)  # type: ignore[arg-type]
        return pair.access_token  # type: ignore[return-value]

    async def _perform_refresh(self) -> TokenPair:
        refresh_token = self.token_store.get_refresh_token()
        if not refresh_token:
            raise RefreshFailedError("no refresh token available")

        self.refresh_count += 1
        logger.info("refresh_started", refresh_token=refresh_token)
        try:
            if self.timeout is None:
                pair = await self._refresh_call(refresh_token)
            else:
                pair = await asyncio.wait_for(self._refresh_call(refresh_token), self.timeout)
        except RefreshFailedError:
            raise
        except asyncio.TimeoutError as exc:
            raise RefreshFailedError(
                f"token refresh timed out after {self.timeout}s"
            ) from exc
        except Exception as exc:
            raise RefreshFailedError(f"token refresh failed: {exc}") from exc

        if not pair.access_token or not pair.refresh_token:
            raise RefreshFailedError("token refresh returned an incomplete token pair")
        return pair

    def _take_waiters(self) -> List[asyncio.Future[str]]:
        """Detach the queued callers and reset the refresh state."""
        waiters = self._subscribers
        self._subscribers = []
        self.is_refreshing = False
        return waiters

    @staticmethod
    def _reject(waiters: List[asyncio.Future[str]], error: RefreshFailedError) -> None:
        for future in waiters:
            if not future.done():
                waiter_error = RefreshFailedError(error.message, response=error.response)
                waiter_error.__cause__ = error
                future.set_exception(waiter_error)

    def _fail(self, waiters: List[asyncio.Future[str]], error: RefreshFailedError) -> None:
        self._reject(waiters, error)
        try:
            self.token_store.clear_tokens()
        except StorageError as exc:
            # In-memory tokens are already gone; the session still ends
            logger.error("session_clear_failed", error=exc.message)
        logger.warning("refresh_failed", error=error.message, rejected=len(waiters))
        if self._on_session_lost is not None:
            try:
                self._on_session_lost(error.message)
            except Exception as exc:
                logger.error("session_lost_callback_failed", error=str(exc))
