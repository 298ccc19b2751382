from authsession.auth_api import AuthApi
from authsession.client import ApiClient, build_client
from authsession.errors import (
    ApiError,
    AuthenticationError,
    ForbiddenError,
    SessionTerminatedError,
    TransportError,
)
from authsession.portal import LoggingNavigator, Portal, guard_route
from authsession.public_paths import PublicPathClassifier
from authsession.refresh import RefreshCoordinator
from authsession.tokens import TokenPair, TokenStore

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthApi",
    "AuthenticationError",
    "ForbiddenError",
    "LoggingNavigator",
    "Portal",
    "PublicPathClassifier",
    "RefreshCoordinator",
    "SessionTerminatedError",
    "TokenPair",
    "TokenStore",
    "TransportError",
    "build_client",
    "guard_route",
]
