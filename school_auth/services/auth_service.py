"""
School Auth — Authentication flows

Register, login, refresh, logout, password recovery, password change and email
verification. Every method raises the typed errors from core.exceptions; the
routes translate nothing themselves.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from school_auth.core.config import Settings
from school_auth.core.exceptions import (
    AccountDeactivated,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    RevokedToken,
    ValidationError,
)
from school_auth.core.passwords import PasswordHasher
from school_auth.core.permissions import Role
from school_auth.core.revocation import TokenDenylist
from school_auth.core.tokens import TokenPair, TokenService
from school_auth.db.user_store import UserStore
from school_auth.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
RESET_REQUESTED = "If that email is registered, a password reset link has been sent"


def generate_one_time_token() -> str:
    """32 random bytes, hex-encoded."""
    return secrets.token_hex(32)


@dataclass
class AuthResult:
    user: User
    tokens: TokenPair
    expires_in: int


@dataclass
class ResetRequestResult:
    message: str
    reset_token: str | None = None


class AuthService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        denylist: TokenDenylist,
        settings: Settings,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.denylist = denylist
        self.settings = settings

    def _result(self, user: User) -> AuthResult:
        return AuthResult(
            user=user,
            tokens=self.tokens.issue(user),
            expires_in=self.tokens.access_expires_in,
        )

    # ─── Register / Login ─────────────────────────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        role: Role | None = None,
        school_id: str | None = None,
        **profile: Any,
    ) -> AuthResult:
        if await self.store.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        profile = {k: v for k, v in profile.items() if v is not None}
        user = await self.store.create(
            email=email,
            hashed_password=await self.hasher.hash_async(password),
            full_name=full_name,
            role=role or Role.TEACHER,
            school_id=school_id,
            email_verification_token=generate_one_time_token(),
            **profile,
        )
        return self._result(user)

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.store.get_by_email(email)
        if user is None:
            raise AuthenticationError(INVALID_CREDENTIALS)

        # Checked before the password: a deactivated account is reported as such.
        if not user.is_active:
            raise AccountDeactivated()

        if not await self.hasher.verify_async(password, user.hashed_password):
            raise AuthenticationError(INVALID_CREDENTIALS)

        changes: dict[str, Any] = {"last_login": datetime.now(tz=timezone.utc)}
        if self.hasher.needs_rehash(user.hashed_password):
            changes["hashed_password"] = await self.hasher.hash_async(password)
        user = await self.store.update(user, **changes)
        logger.info("User %s logged in", user.id)
        return self._result(user)

    # ─── Token lifecycle ──────────────────────────────────────────────────────

    async def refresh(self, refresh_token: str) -> AuthResult:
        claims = self.tokens.verify_refresh(refresh_token)
        # Rotation: revoking is the atomic claim on the token, so of two
        # concurrent refreshes with the same token only one gets past here.
        if self.denylist.enabled and not await self.denylist.revoke(claims):
            raise RevokedToken("Refresh token has been revoked")

        user = await self.store.get_by_id(claims["userId"])
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")
        return self._result(user)

    async def logout(self, access_claims: dict[str, Any], refresh_token: str | None = None) -> None:
        """Revoke the caller's access token and, when given, its refresh token. Never fails."""
        await self.denylist.revoke(access_claims)
        if refresh_token:
            try:
                refresh_claims = self.tokens.verify_refresh(refresh_token)
            except AuthenticationError:
                logger.debug("Ignoring unusable refresh token on logout")
                return
            if refresh_claims["userId"] == access_claims.get("userId"):
                await self.denylist.revoke(refresh_claims)

    # ─── Passwords ────────────────────────────────────────────────────────────

    async def request_password_reset(self, email: str) -> ResetRequestResult:
        user = await self.store.get_by_email(email)
        if user is None:
            return ResetRequestResult(message=RESET_REQUESTED)

        token = generate_one_time_token()
        expires = datetime.now(tz=timezone.utc) + timedelta(
            minutes=self.settings.PASSWORD_RESET_EXPIRE_MINUTES
        )
        await self.store.update(user, reset_password_token=token, reset_password_expires=expires)
        logger.info("Password reset requested for user %s", user.id)
        # TODO: hand the token to the mail service once it exposes a send endpoint
        return ResetRequestResult(
            message=RESET_REQUESTED,
            reset_token=token if self.settings.EXPOSE_RESET_TOKEN else None,
        )

    async def reset_password(self, token: str, new_password: str) -> None:
        user = await self.store.get_by_reset_token(token)
        if user is None:
            raise ValidationError("Invalid or expired reset token")

        await self.store.update(
            user,
            hashed_password=await self.hasher.hash_async(new_password),
            reset_password_token=None,
            reset_password_expires=None,
        )
        logger.info("Password reset completed for user %s", user.id)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = await self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not await self.hasher.verify_async(current_password, user.hashed_password):
            raise AuthenticationError("Current password is incorrect")

        await self.store.update(
            user,
            hashed_password=await self.hasher.hash_async(new_password),
            reset_password_token=None,
            reset_password_expires=None,
        )
        logger.info("Password changed for user %s", user.id)

    # ─── Email verification ───────────────────────────────────────────────────

    async def verify_email(self, token: str) -> None:
        user = await self.store.get_by_verification_token(token)
        if user is None:
            raise ValidationError("Invalid verification token")
        await self.store.update(user, email_verified=True, email_verification_token=None)
