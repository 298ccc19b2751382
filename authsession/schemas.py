from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Wire models use the backend's camelCase names; Python code uses snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class RefreshTokenRequest(_CamelModel):
    refresh_token: str = Field(..., alias="refreshToken")


class TokenResponse(_CamelModel):
    access_token: str = Field(..., alias="accessToken", min_length=1)
    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class LoginRequest(_CamelModel):
    email: str
    password: str


class SignupRequest(_CamelModel):
    email: str
    password: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    # Creates a business alongside the user when present
    business_name: Optional[str] = Field(None, alias="businessName")
    phone: Optional[str] = None


class AuthResponse(_CamelModel):
    access_token: Optional[str] = Field(None, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    roles: Optional[List[str]] = None
    permissions: Optional[List[str]] = None
    business_id: Optional[str] = Field(None, alias="businessId")
    business_name: Optional[str] = Field(None, alias="businessName")
    business_slug: Optional[str] = Field(None, alias="businessSlug")
    must_change_password: Optional[bool] = Field(None, alias="mustChangePassword")
    message: Optional[str] = None

    def stored_user(self) -> dict:
        """Profile blob cached under the ``user`` storage key after login."""
        return {
            "userId": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "roles": self.roles,
            "permissions": self.permissions,
            "businessId": self.business_id,
            "businessName": self.business_name,
        }


class UserProfileResponse(_CamelModel):
    user_id: str = Field(..., alias="userId")
    email: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    phone: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")
    is_verified: bool = Field(False, alias="isVerified")
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)


class UpdateProfileRequest(_CamelModel):
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    phone: Optional[str] = None


class MessageResponse(_CamelModel):
    message: str = ""
