"""
School Auth — Pydantic schemas

Request and response bodies use camelCase on the wire (fullName, refreshToken,
newPassword, ...) and accept snake_case field names as well.
"""
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email

from school_auth.core.permissions import Role


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Requests ──────────────────────────────────────────────────────────────────

class RegisterRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=100)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: Role | None = None
    school_id: uuid.UUID | None = None
    language: Literal["en", "fr"] | None = None
    phone: str | None = Field(None, min_length=10, max_length=20)
    address: str | None = Field(None, max_length=500)
    date_of_birth: date | None = None
    gender: Literal["male", "female", "other"] | None = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        # Validated, but stored exactly as given: login matches on this string.
        validate_email(v)
        return v

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: date | None) -> date | None:
        if v is not None and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1)


# ─── Responses ─────────────────────────────────────────────────────────────────

class UserResponse(CamelModel):
    """Public view of a user. Password hash and one-time tokens are not fields here."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    full_name: str
    role: Role
    school_id: str | None = None
    is_active: bool
    email_verified: bool
    language: str
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthData(CamelModel):
    user: UserResponse
    token: str
    refresh_token: str
    expires_in: int  # seconds


class AuthResponse(CamelModel):
    success: bool = True
    data: AuthData
    message: str


class ProfileResponse(CamelModel):
    success: bool = True
    data: UserResponse
    message: str = "Profile retrieved successfully"


class MessageResponse(CamelModel):
    success: bool = True
    message: str
    reset_token: str | None = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]
