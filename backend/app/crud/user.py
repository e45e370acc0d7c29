"""Credential store: CRUD operations for the User model."""

import uuid

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateEmailError
from app.core.security import get_password_hash, verify_password
from app.models.user import User
from app.schemas.token import TokenIdentity
from app.schemas.user import SignupRequest


class UserStore:
    """Persists user records and checks their passwords.

    One instance wraps one database session, so it lives for a single request.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID | str) -> User | None:
        """
        Get user by ID.

        Args:
            user_id: User UUID, as a UUID or its string form

        Returns:
            User object or None if not found or the ID is not a UUID
        """
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None

        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        """
        Get user by email address.

        Args:
            email: User email (matched case-insensitively)

        Returns:
            User object or None if not found
        """
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        result = await self.db.execute(select(exists().where(User.email == email.strip().lower())))
        return bool(result.scalar())

    async def create(self, user_in: SignupRequest) -> User:
        """
        Create new user. The password is hashed before it is stored.

        Args:
            user_in: Signup schema

        Returns:
            Created user object

        Raises:
            DuplicateEmailError: If the email was registered concurrently
        """
        db_user = User(
            email=user_in.email.lower(),
            hashed_password=get_password_hash(user_in.password),
            full_name=user_in.full_name,
            avatar_url=str(user_in.avatar_url) if user_in.avatar_url else None,
        )
        self.db.add(db_user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmailError() from e
        await self.db.refresh(db_user)
        return db_user

    async def delete(self, db_user: User) -> None:
        await self.db.delete(db_user)
        await self.db.commit()

    @staticmethod
    def compare_password(db_user: User, password: str) -> bool:
        return verify_password(password, db_user.hashed_password)

    async def get_identity(self, user_id: str) -> TokenIdentity | None:
        """Resolve the current identity claim for a user ID, if the account exists."""
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        return identity_for(user)


def identity_for(user: User) -> TokenIdentity:
    return TokenIdentity(id=str(user.id), email=user.email)
