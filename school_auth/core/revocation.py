"""
School Auth — Token denylist (Redis-backed)

Logging out or rotating a refresh token records the token's jti with a TTL equal
to the token's remaining lifetime, so the key disappears exactly when the token
would have expired anyway.
"""
import logging
import math
import time
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

REVOKED_PREFIX = "revoked:"


class TokenDenylist:
    def __init__(self, redis: aioredis.Redis, enabled: bool = True):
        self._redis = redis
        self.enabled = enabled

    @staticmethod
    def _key(jti: str) -> str:
        return f"{REVOKED_PREFIX}{jti}"

    async def revoke(self, claims: dict[str, Any]) -> bool:
        """
        Deny the token described by `claims` until it expires.

        SET NX makes this a claim: only the first caller for a given jti gets
        True. False means the token was already revoked, is past its expiry, or
        the denylist is disabled.
        """
        if not self.enabled:
            return False
        jti = claims.get("jti")
        exp = claims.get("exp")
        if not jti or exp is None:
            return False
        ttl = math.ceil(exp - time.time())
        if ttl <= 0:
            return False
        token_type = claims.get("type", "access")
        stored = await self._redis.set(self._key(jti), token_type, nx=True, ex=ttl)
        if not stored:
            return False
        logger.info("Revoked %s token for user %s", token_type, claims.get("userId"))
        return True

    async def is_revoked(self, jti: str | None) -> bool:
        if not self.enabled or not jti:
            return False
        return bool(await self._redis.exists(self._key(jti)))
