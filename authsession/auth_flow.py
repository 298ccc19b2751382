from __future__ import annotations

from typing import AsyncGenerator, Generator

import httpx

from authsession.errors import RefreshFailedError, SessionTerminatedError
from authsession.logging import get_logger
from authsession.public_paths import PublicPathClassifier
from authsession.recovery import RecoveryAction, RecoveryPolicy
from authsession.refresh import RefreshCoordinator
from authsession.tokens import TokenStore

logger = get_logger(__name__)

# Request extension holding the one-shot retry flag
RETRY_MARKER = "auth_retry"


def is_retried(request: httpx.Request) -> bool:
    return bool(request.extensions.get(RETRY_MARKER))


def mark_retried(request: httpx.Request) -> None:
    request.extensions = {**request.extensions, RETRY_MARKER: True}


class SessionAuth(httpx.Auth):
    """httpx auth flow attaching the session bearer and recovering from 401.

    Per request: attach the token, send, and on 401 either refresh once and
    replay, or end the session. Anything else, 403 included, goes back to the
    caller untouched.
    """

    requires_request_body = True
    requires_response_body = True

    def __init__(
        self,
        token_store: TokenStore,
        classifier: PublicPathClassifier,
        coordinator: RefreshCoordinator,
        policy: RecoveryPolicy,
    ) -> None:
        self.token_store = token_store
        self.classifier = classifier
        self.coordinator = coordinator
        self.policy = policy

    def authenticate_request(self, request: httpx.Request) -> httpx.Request:
        token = self.token_store.get_access_token()
        if token and not self.classifier.is_public(request.url):
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("SessionAuth only supports httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        response = yield self.authenticate_request(request)

        while True:
            if self.classifier.is_public(request.url):
                # Login and friends answer 401 for bad credentials, not expiry
                return
            action = self.policy.decide(response.status_code, retried=is_retried(request))

            if action is RecoveryAction.PASS_THROUGH:
                return
            if action is RecoveryAction.IGNORE:
                logger.info(
                    "retry_rejected",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                )
                return
            if action is RecoveryAction.NO_SESSION:
                self.policy.terminate_session("no refresh token")
                raise SessionTerminatedError(
                    "Session expired and no refresh token is available",
                    response=response,
                )

            mark_retried(request)
            try:
                access_token = await self.coordinator.refresh()
            except RefreshFailedError as exc:
                raise SessionTerminatedError(
                    f"Session expired: {exc.message}", response=response
                ) from exc

            request.headers["Authorization"] = f"Bearer {access_token}"
            logger.debug("request_replayed", method=request.method, path=request.url.path)
            response = yield request
