from __future__ import annotations

from typing import Optional

from authsession.client import ApiClient
from authsession.logging import get_logger
from authsession.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    UpdateProfileRequest,
    UserProfileResponse,
)

logger = get_logger(__name__)


class AuthApi:
    """Authentication endpoints; the only writer of a session besides refresh."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.token_store = client.token_store

    def _store_session(self, auth: AuthResponse) -> None:
        if auth.access_token and auth.refresh_token:
            self.token_store.set_tokens(auth.access_token, auth.refresh_token)
            self.token_store.set_user(auth.stored_user())

    async def login(self, email: str, password: str) -> AuthResponse:
        # Stale tokens from a previous session must not leak into the new one
        self.token_store.clear_tokens()
        body = LoginRequest(email=email, password=password).to_wire()
        response = await self.client.post("/api/auth/login", json=body)
        auth = AuthResponse.model_validate(response.json())
        self._store_session(auth)
        logger.info("login_succeeded", user_id=auth.user_id)
        return auth

    async def signup(self, request: SignupRequest) -> AuthResponse:
        response = await self.client.post("/api/auth/signup", json=request.to_wire())
        auth = AuthResponse.model_validate(response.json())
        self._store_session(auth)
        return auth

    async def logout(self) -> None:
        """Tell the backend, then drop local state whatever it answered."""
        try:
            await self.client.post("/api/auth/logout")
        finally:
            self.token_store.clear_tokens()

    async def get_profile(self) -> UserProfileResponse:
        response = await self.client.get("/api/auth/me")
        profile = UserProfileResponse.model_validate(response.json())
        self.token_store.set_user(profile.to_wire())
        return profile

    async def update_profile(self, update: UpdateProfileRequest) -> UserProfileResponse:
        response = await self.client.put("/api/auth/me", json=update.to_wire())
        profile = UserProfileResponse.model_validate(response.json())
        self.token_store.set_user(profile.to_wire())
        return profile

    async def _message(self, path: str, body: dict) -> MessageResponse:
        response = await self.client.post(path, json=body)
        return MessageResponse.model_validate(response.json())

    async def verify_email(self, email: str, otp_code: str) -> MessageResponse:
        return await self._message("/api/auth/verify-email", {"email": email, "otpCode": otp_code})

    async def resend_verification(self, email: str) -> MessageResponse:
        return await self._message("/api/auth/resend-verification", {"email": email})

    async def forgot_password(self, email: str) -> MessageResponse:
        return await self._message("/api/auth/forgot-password", {"email": email})

    async def reset_password(self, email: str, otp_code: str, new_password: str) -> MessageResponse:
        return await self._message(
            "/api/auth/reset-password",
            {"email": email, "otpCode": otp_code, "newPassword": new_password},
        )

    async def change_password(self, current_password: str, new_password: str) -> MessageResponse:
        return await self._message(
            "/api/auth/change-password",
            {"currentPassword": current_password, "newPassword": new_password},
        )

    def get_stored_user(self) -> Optional[dict]:
        return self.token_store.get_stored_user()

    def is_authenticated(self) -> bool:
        return self.token_store.is_authenticated()
