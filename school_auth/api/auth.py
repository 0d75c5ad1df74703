"""
School Auth — Auth API routes
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from school_auth.api.dependencies import AuthServiceDep, CurrentUser, get_token_claims
from school_auth.schemas.auth import (
    AuthData,
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
    VerifyEmailRequest,
)
from school_auth.services.auth_service import AuthResult

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        data=AuthData(
            user=UserResponse.model_validate(result.user),
            token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=result.expires_in,
        ),
        message=message,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth: AuthServiceDep):
    """Create an account (role defaults to teacher) and sign it in."""
    result = await auth.register(
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        role=payload.role,
        school_id=str(payload.school_id) if payload.school_id else None,
        language=payload.language,
        phone=payload.phone,
        address=payload.address,
        date_of_birth=payload.date_of_birth,
        gender=payload.gender,
    )
    return _auth_response(result, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, auth: AuthServiceDep):
    """Validate credentials and issue an access/refresh token pair."""
    result = await auth.login(payload.email, payload.password)
    return _auth_response(result, "Login successful")


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(payload: RefreshRequest, auth: AuthServiceDep):
    """Exchange a refresh token for a new pair; the presented token is revoked."""
    result = await auth.refresh(payload.refresh_token)
    return _auth_response(result, "Token refreshed successfully")


@router.post("/logout", response_model=MessageResponse, response_model_exclude_none=True)
async def logout(
    auth: AuthServiceDep,
    claims: dict[str, Any] = Depends(get_token_claims),
    payload: LogoutRequest | None = Body(default=None),
):
    await auth.logout(claims, payload.refresh_token if payload else None)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse, response_model_exclude_none=True)
async def forgot_password(payload: ForgotPasswordRequest, auth: AuthServiceDep):
    """Always answers with the same message, registered email or not."""
    result = await auth.request_password_reset(payload.email)
    return MessageResponse(message=result.message, reset_token=result.reset_token)


@router.post("/reset-password", response_model=MessageResponse, response_model_exclude_none=True)
async def reset_password(payload: ResetPasswordRequest, auth: AuthServiceDep):
    await auth.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/change-password", response_model=MessageResponse, response_model_exclude_none=True)
async def change_password(payload: ChangePasswordRequest, user: CurrentUser, auth: AuthServiceDep):
    await auth.change_password(user.id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/verify-email", response_model=MessageResponse, response_model_exclude_none=True)
async def verify_email(payload: VerifyEmailRequest, auth: AuthServiceDep):
    await auth.verify_email(payload.token)
    return MessageResponse(message="Email verified successfully")


@router.get("/profile", response_model=ProfileResponse)
async def profile(user: CurrentUser):
    return ProfileResponse(data=UserResponse.model_validate(user))
