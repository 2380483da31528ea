"""User service — account creation and credential checks."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.jwt import Principal
from storefront.auth.password import hash_password, verify_password
from storefront.db.models import User
from storefront.errors import Conflict


def principal_for(user: User) -> Principal:
    return Principal(user_id=str(user.id), email=user.email, role=user.role)


class UserService:
    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 12):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()

    async def get(self, user_id: str) -> Optional[User]:
        try:
            return await self.db.get(User, uuid.UUID(str(user_id)))
        except ValueError:
            return None

    async def create_user(
        self, email: str, name: str, password: str, role: str = "user"
    ) -> User:
        if await self.get_by_email(email):
            raise Conflict("Email already registered")
        user = User(
            email=email.lower(),
            name=name,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role=role,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None."""
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user
