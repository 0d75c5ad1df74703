"""
School Auth — Credential store

Single-record reads and writes over the users table. Soft-deleted rows are
invisible to every lookup. Each write commits and refreshes the instance so
server-side defaults (timestamps) are loaded before the session is reused.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school_auth.core.exceptions import ConflictError
from school_auth.models.user import User

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _live(self):
        return select(User).where(User.deleted_at.is_(None))

    async def get_by_id(self, user_id: str) -> User | None:
        result = await self.db.execute(self._live().where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        # Exact match: emails are not case-folded.
        result = await self.db.execute(self._live().where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_reset_token(self, token: str, now: datetime | None = None) -> User | None:
        """Find the user holding an unexpired password reset token."""
        now = now or datetime.now(tz=timezone.utc)
        result = await self.db.execute(
            self._live().where(
                User.reset_password_token == token,
                User.reset_password_expires > now,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_verification_token(self, token: str) -> User | None:
        result = await self.db.execute(
            self._live().where(User.email_verification_token == token)
        )
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> User:
        user = User(**fields)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User with this email already exists")
        await self.db.refresh(user)
        logger.info("Created user %s with role %s", user.id, user.role.value)
        return user

    async def update(self, user: User, **fields: Any) -> User:
        """Apply all field changes in one commit."""
        for name, value in fields.items():
            setattr(user, name, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def soft_delete(self, user: User) -> User:
        return await self.update(user, deleted_at=datetime.now(tz=timezone.utc))
