"""Tests for the authentication endpoints wrapper."""

import json

import pytest

from authsession.auth_api import AuthApi
from authsession.errors import AuthenticationError, SessionTerminatedError
from authsession.schemas import SignupRequest, UpdateProfileRequest
from authsession.tokens import TokenPair, TokenStore
from tests.fake_backend import FakeBackend, make_client


async def test_login_stores_tokens_and_user(storage, navigator):
    store = TokenStore(storage)
    backend = FakeBackend()
    async with make_client(backend, store, navigator) as client:
        auth = await AuthApi(client).login("ada@example.com", "correct-horse")

    assert auth.user_id == "u-1"
    assert auth.business_slug == "analytical-engines"
    assert store.tokens == TokenPair("A1", "R1")
    user = store.get_stored_user()
    assert user["userId"] == "u-1"
    assert user["roles"] == ["BUSINESS_OWNER"]
    assert user["businessName"] == "Analytical Engines"
    assert "Authorization" not in backend.requests[0].headers


async def test_login_clears_previous_session_first(token_store, navigator):
    token_store.set_business({"businessId": "old"})
    backend = FakeBackend()
    async with make_client(backend, token_store, navigator) as client:
        with pytest.raises(AuthenticationError):
            await AuthApi(client).login("ada@example.com", "wrong")

    assert token_store.tokens == TokenPair()
    assert token_store.get_stored_business() is None
    assert backend.refresh_calls == 0
    assert navigator.history == []


async def test_logout_clears_local_state(token_store, navigator):
    backend = FakeBackend(valid_token="A1")
    async with make_client(backend, token_store, navigator) as client:
        await AuthApi(client).logout()

    assert backend.requests[0].url.path == "/api/auth/logout"
    assert token_store.tokens == TokenPair()


async def test_logout_clears_even_when_backend_fails(token_store, navigator):
    backend = FakeBackend(valid_token=None, refresh_status=500)
    async with make_client(backend, token_store, navigator) as client:
        with pytest.raises(SessionTerminatedError):
            await AuthApi(client).logout()

    assert token_store.tokens == TokenPair()


async def test_get_profile_refreshes_cached_user(token_store, navigator):
    backend = FakeBackend(valid_token="A1")
    async with make_client(backend, token_store, navigator) as client:
        api = AuthApi(client)
        profile = await api.get_profile()

    assert profile.email == "ada@example.com"
    assert profile.is_active
    assert api.get_stored_user()["userId"] == "u-1"
    assert api.is_authenticated()


async def test_expired_profile_call_refreshes_transparently(token_store, navigator):
    backend = FakeBackend()
    async with make_client(backend, token_store, navigator) as client:
        profile = await AuthApi(client).get_profile()

    assert profile.user_id == "u-1"
    assert backend.refresh_calls == 1
    assert token_store.tokens == TokenPair("A2", "R2")


async def test_update_profile_sends_camel_case(token_store, navigator):
    backend = FakeBackend(valid_token="A1")
    async with make_client(backend, token_store, navigator) as client:
        await AuthApi(client).update_profile(UpdateProfileRequest(first_name="Augusta"))

    assert backend.requests[0].method == "PUT"
    assert json.loads(backend.requests[0].content) == {"firstName": "Augusta"}


async def test_signup_without_tokens_keeps_session_empty(navigator):
    store = TokenStore()
    backend = FakeBackend()
    async with make_client(backend, store, navigator) as client:
        result = await AuthApi(client).signup(
            SignupRequest(
                email="ada@example.com",
                password="correct-horse",
                first_name="Ada",
                last_name="Lovelace",
            )
        )

    assert result.message == "ok"
    assert store.tokens == TokenPair()
    assert store.get_stored_user() is None


@pytest.mark.parametrize(
    "call,path",
    [
        (lambda api: api.verify_email("ada@example.com", "123456"), "/api/auth/verify-email"),
        (lambda api: api.resend_verification("ada@example.com"), "/api/auth/resend-verification"),
        (lambda api: api.forgot_password("ada@example.com"), "/api/auth/forgot-password"),
        (
            lambda api: api.reset_password("ada@example.com", "123456", "new-horse"),
            "/api/auth/reset-password",
        ),
    ],
)
async def test_public_account_flows(call, path, token_store, navigator):
    backend = FakeBackend()
    async with make_client(backend, token_store, navigator) as client:
        result = await call(AuthApi(client))

    assert result.message == "ok"
    assert backend.requests[0].url.path == path
    assert "Authorization" not in backend.requests[0].headers


async def test_change_password_is_authenticated(token_store, navigator):
    backend = FakeBackend(valid_token="A1")
    async with make_client(backend, token_store, navigator) as client:
        await AuthApi(client).change_password("old-horse", "new-horse")

    request = backend.requests[0]
    assert request.headers["Authorization"] == "Bearer A1"
