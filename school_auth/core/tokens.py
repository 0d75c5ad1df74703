"""
School Auth — JWT issuance and verification

Access and refresh tokens are signed with different secrets and carry a "type"
claim, so neither can be replayed as the other. Every token has a "jti" used by
the revocation denylist.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from school_auth.core.config import Settings, get_settings
from school_auth.core.exceptions import ConfigurationError, ExpiredToken, InvalidToken

settings = get_settings()

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        if access_secret == refresh_secret:
            raise ConfigurationError("Access and refresh tokens must use different secrets")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, cfg: Settings) -> "TokenService":
        return cls(
            access_secret=cfg.JWT_SECRET_KEY,
            refresh_secret=cfg.JWT_REFRESH_SECRET_KEY,
            algorithm=cfg.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=cfg.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=cfg.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @property
    def access_expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    # ─── Issuance ─────────────────────────────────────────────────────────────

    def _encode(self, claims: dict[str, Any], token_type: str, ttl: timedelta, secret: str) -> str:
        now = datetime.now(tz=timezone.utc)
        payload = claims.copy()
        payload.update(
            {"type": token_type, "jti": str(uuid.uuid4()), "iat": now, "exp": now + ttl}
        )
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def create_access_token(self, user) -> str:
        role = getattr(user.role, "value", user.role)
        claims = {
            "userId": user.id,
            "email": user.email,
            "role": role,
            "schoolId": user.school_id,
        }
        return self._encode(claims, ACCESS, self.access_ttl, self._access_secret)

    def create_refresh_token(self, user) -> str:
        return self._encode({"userId": user.id}, REFRESH, self.refresh_ttl, self._refresh_secret)

    def issue(self, user) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
        )

    # ─── Verification ─────────────────────────────────────────────────────────

    def _decode(self, token: str, secret: str, expected_type: str, label: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise ExpiredToken(f"{label} expired")
        except JWTError:
            raise InvalidToken(f"Invalid {label.lower()}")

        if claims.get("type") != expected_type or not claims.get("userId") or not claims.get("jti"):
            raise InvalidToken(f"Invalid {label.lower()}")
        return claims

    def verify_access(self, token: str) -> dict[str, Any]:
        """Decode an access token. Raises InvalidToken or ExpiredToken."""
        return self._decode(token, self._access_secret, ACCESS, "Token")

    def verify_refresh(self, token: str) -> dict[str, Any]:
        """Decode a refresh token. Raises InvalidToken or ExpiredToken."""
        return self._decode(token, self._refresh_secret, REFRESH, "Refresh token")


token_service = TokenService.from_settings(settings)
