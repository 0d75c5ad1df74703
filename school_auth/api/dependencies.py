"""
School Auth — Request authorization dependencies

get_current_user resolves "Authorization: Bearer <token>" to a live, active user:
verify the token, reject revoked tokens, re-fetch the user (claims are never
trusted as current state), check is_active. require_role / require_permission
build on it; get_current_user_optional swallows every auth failure.
"""
import logging
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from school_auth.core.config import get_settings
from school_auth.core.exceptions import (
    AccountDeactivated,
    AuthenticationError,
    InsufficientPermissions,
    MissingToken,
    RevokedToken,
    UserNotFound,
)
from school_auth.core.passwords import password_hasher
from school_auth.core.permissions import Role, has_permission, has_role, normalize_roles
from school_auth.core.redis_client import get_redis
from school_auth.core.revocation import TokenDenylist
from school_auth.core.tokens import token_service
from school_auth.db.database import get_db
from school_auth.db.user_store import UserStore
from school_auth.models.user import User
from school_auth.services.auth_service import AuthService

settings = get_settings()
logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_denylist() -> TokenDenylist:
    return TokenDenylist(get_redis(), enabled=settings.TOKEN_REVOCATION_ENABLED)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    denylist: TokenDenylist = Depends(get_denylist),
) -> AuthService:
    return AuthService(store, password_hasher, token_service, denylist, settings)


async def _resolve_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    store: UserStore,
    denylist: TokenDenylist,
) -> tuple[User, dict[str, Any]]:
    if credentials is None or not credentials.credentials:
        raise MissingToken()

    claims = token_service.verify_access(credentials.credentials)
    if await denylist.is_revoked(claims["jti"]):
        raise RevokedToken()

    user = await store.get_by_id(claims["userId"])
    if user is None:
        raise UserNotFound()
    if not user.is_active:
        raise AccountDeactivated()

    request.state.user = user
    request.state.token_claims = claims
    return user, claims


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: UserStore = Depends(get_user_store),
    denylist: TokenDenylist = Depends(get_denylist),
) -> User:
    user, _ = await _resolve_user(request, credentials, store, denylist)
    return user


async def get_current_user_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: UserStore = Depends(get_user_store),
    denylist: TokenDenylist = Depends(get_denylist),
) -> User | None:
    """Same resolution as get_current_user, but anonymous on any auth failure."""
    if credentials is None:
        return None
    try:
        user, _ = await _resolve_user(request, credentials, store, denylist)
    except AuthenticationError as exc:
        logger.debug("Optional auth fell back to anonymous: %s", type(exc).__name__)
        return None
    return user


def get_token_claims(request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return request.state.token_claims


def require_role(*roles: Role | str | list[Role | str]):
    """Dependency factory: 403 unless the user's role is one of `roles`."""
    allowed = normalize_roles(roles)

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if not has_role(user.role, allowed):
            raise InsufficientPermissions()
        return user

    return role_checker


def require_permission(permission: str):
    """Dependency factory: 403 unless the user's role grants `permission` (or "*")."""

    async def permission_checker(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, permission):
            raise InsufficientPermissions()
        return user

    return permission_checker


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_current_user_optional)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
