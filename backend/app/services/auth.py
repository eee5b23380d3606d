"""Authentication service: credential checks, registration, password changes."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateKey
from app.core.security import (
    create_access_token,
    hash_password,
    token_expiry_seconds,
    verify_password,
)
from app.models import User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_name(self, user_name: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.user_name) == user_name.lower())
        )
        return result.scalar_one_or_none()

    async def authenticate_user(self, user_name: str, password: str) -> User | None:
        """Validate user name / password and return the user or None."""
        user = await self.get_by_user_name(user_name)
        if user is None:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def issue_token(self, user: User) -> tuple[str, int]:
        token = create_access_token(user.id, user.user_name, admin=user.is_admin)
        return token, token_expiry_seconds()

    async def login(self, user_name: str, password: str) -> tuple[User, str, int] | None:
        user = await self.authenticate_user(user_name, password)
        if user is None:
            logger.warning("Failed login attempt for %s", user_name)
            return None
        token, expires_in = self.issue_token(user)
        logger.info("User logged in: %s", user.user_name)
        return user, token, expires_in

    async def register(self, user_name: str, password: str) -> tuple[User, str, int]:
        """Create a non-admin account and sign it in."""
        if await self.get_by_user_name(user_name) is not None:
            raise DuplicateKey("User already exists", field="UserName")
        user = User(user_name=user_name, password_hash=hash_password(password), admin=0)
        self.db.add(user)
        await self.db.flush()
        token, expires_in = self.issue_token(user)
        logger.info("New user registered: %s", user.user_name)
        return user, token, expires_in

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> bool:
        if not verify_password(current_password, user.password_hash):
            return False
        user.password_hash = hash_password(new_password)
        await self.db.flush()
        logger.info("Password changed for user: %s", user.user_name)
        return True
