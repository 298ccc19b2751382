from __future__ import annotations

import os
import uuid
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import httpx

from authsession.auth_flow import SessionAuth
from authsession.config import REFRESH_TOKEN_PATH, Settings, StorageBackend, get_settings
from authsession.errors import RefreshFailedError, TransportError, error_for_response
from authsession.logging import correlation_id_var, get_correlation_id, get_logger
from authsession.portal import Navigator, Portal, PortalContext
from authsession.public_paths import DEFAULT_PUBLIC_PATHS, PublicPathClassifier
from authsession.recovery import RecoveryPolicy
from authsession.refresh import DEFAULT_REFRESH_TIMEOUT_SECONDS, RefreshCoordinator
from authsession.schemas import RefreshTokenRequest, TokenResponse
from authsession.storage import FileStorage, MemoryStorage, RedisStorage, SessionStorage
from authsession.tokens import TokenPair, TokenStore

logger = get_logger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class ApiClient:
    """Session-aware HTTP client.

    Wraps an ``httpx.AsyncClient`` whose auth flow attaches the bearer token
    and recovers from expiry. Error statuses (4xx/5xx) raise the matching
    ``ApiError`` subclass carrying the response; transport failures raise
    ``TransportError``.

    Each instance owns its token store and refresh state, so several sessions
    can live in one process.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        token_store: Optional[TokenStore] = None,
        public_paths: Iterable[str] = DEFAULT_PUBLIC_PATHS,
        refresh_path: str = REFRESH_TOKEN_PATH,
        navigator: Optional[Navigator] = None,
        portal: Optional[Union[Portal, str]] = None,
        location: Optional[Callable[[], Optional[str]]] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        refresh_timeout: Optional[float] = DEFAULT_REFRESH_TIMEOUT_SECONDS,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token_store = token_store if token_store is not None else TokenStore()
        self.refresh_path = refresh_path
        self.classifier = PublicPathClassifier(public_paths)
        self.policy = RecoveryPolicy(
            self.token_store,
            navigator=navigator,
            portal_context=PortalContext(
                Portal(portal) if portal is not None else None, location=location
            ),
        )
        self.coordinator = RefreshCoordinator(
            self.token_store,
            self._call_refresh_endpoint,
            on_session_lost=self.policy.redirect_to_login,
            timeout=refresh_timeout,
        )
        self.auth = SessionAuth(self.token_store, self.classifier, self.coordinator, self.policy)
        self._http = httpx.AsyncClient(
            base_url=base_url,
            auth=self.auth,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    @property
    def navigator(self) -> Navigator:
        return self.policy.navigator

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _call_refresh_endpoint(self, refresh_token: str) -> TokenPair:
        body = RefreshTokenRequest(refresh_token=refresh_token).to_wire()
        # auth=None: the refresh call must never enter the session auth flow
        response = await self._http.post(self.refresh_path, json=body, auth=None)
        if response.is_error:
            raise RefreshFailedError(
                f"refresh endpoint returned {response.status_code}", response=response
            )
        try:
            payload = TokenResponse.model_validate(response.json())
        except ValueError as exc:
            raise RefreshFailedError(
                "refresh endpoint returned an invalid token payload", response=response
            ) from exc
        return TokenPair(payload.access_token, payload.refresh_token)

    async def send(self, request: httpx.Request, *, raise_for_status: bool = True) -> httpx.Response:
        """Send a prebuilt request through the session flow."""
        cid_token = None
        if get_correlation_id() is None:
            cid_token = correlation_id_var.set(str(uuid.uuid4()))
        try:
            try:
                response = await self._http.send(request)
            except httpx.TransportError as exc:
                logger.warning(
                    "request_transport_error",
                    method=request.method,
                    path=request.url.path,
                    error=str(exc) or exc.__class__.__name__,
                )
                raise TransportError(
                    f"{request.method} {request.url.path} failed: {exc!r}"
                ) from exc
            if raise_for_status and response.is_error:
                error = error_for_response(response)
                log_fn = logger.error if response.status_code >= 500 else logger.info
                log_fn(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    error_code=error.error_code,
                )
                raise error
            return response
        finally:
            if cid_token is not None:
                correlation_id_var.reset(cid_token)

    def build_request(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        return self._http.build_request(method, url, **kwargs)

    async def request(
        self, method: str, url: str, *, raise_for_status: bool = True, **kwargs: Any
    ) -> httpx.Response:
        request = self.build_request(method, url, **kwargs)
        return await self.send(request, raise_for_status=raise_for_status)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)


def build_storage(settings: Settings) -> SessionStorage:
    """Instantiate the durable storage named by ``settings.storage_backend``.

    Redis is pinged here, so an unreachable server fails at startup with
    ``StorageError`` rather than on the first token write.
    """
    if settings.storage_backend is StorageBackend.MEMORY:
        return MemoryStorage()
    if settings.storage_backend is StorageBackend.REDIS:
        storage = RedisStorage(settings.redis_url, namespace=settings.session_namespace)
        storage.verify_connection()
        return storage
    root = os.path.expanduser(settings.storage_root)
    return FileStorage(root, name=settings.session_namespace)


def build_client(
    settings: Optional[Settings] = None,
    *,
    navigator: Optional[Navigator] = None,
    location: Optional[Callable[[], Optional[str]]] = None,
    storage: Optional[SessionStorage] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ApiClient:
    """Wire a full client (storage, token store, recovery) from settings."""
    settings = settings or get_settings()
    token_store = TokenStore(storage if storage is not None else build_storage(settings))
    return ApiClient(
        settings.api_base_url,
        token_store=token_store,
        public_paths=settings.public_paths,
        refresh_path=settings.refresh_path,
        navigator=navigator,
        portal=settings.portal,
        location=location,
        timeout=httpx.Timeout(
            settings.request_timeout_seconds, connect=settings.connect_timeout_seconds
        ),
        refresh_timeout=settings.refresh_timeout_seconds,
        transport=transport,
    )
