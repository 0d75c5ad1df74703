"""
School Auth — Password hashing (bcrypt via passlib)

The bcrypt output embeds salt and cost, so verification needs nothing but the
stored hash. The context is immutable after construction and safe to share.
"""
import asyncio
import logging

from passlib.context import CryptContext

from school_auth.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__min_rounds=rounds,
        )

    def hash(self, plain: str) -> str:
        return self._context.hash(plain)

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Check a password against a stored hash. Malformed hashes never verify."""
        if not plain or not hashed:
            return False
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """True when the hash was produced with a weaker cost than configured."""
        try:
            return self._context.needs_update(hashed)
        except (ValueError, TypeError):
            return True

    # bcrypt is CPU-bound; keep it off the event loop.
    async def hash_async(self, plain: str) -> str:
        return await asyncio.to_thread(self.hash, plain)

    async def verify_async(self, plain: str, hashed: str | None) -> bool:
        return await asyncio.to_thread(self.verify, plain, hashed)


password_hasher = PasswordHasher(settings.BCRYPT_ROUNDS)
