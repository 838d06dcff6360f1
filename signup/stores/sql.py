"""SQLAlchemy-backed user store."""

from __future__ import annotations

from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signup.models.user import User
from signup.services.errors import ConflictError, StorageError
from signup.stores.base import LOOKUP_FIELDS, LookupField


class SqlUserStore:
    """Store users through an async session factory, one session per call."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        password_context: CryptContext | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._password_context = password_context or CryptContext(
            schemes=["bcrypt"], deprecated="auto"
        )

    async def find(self, field: LookupField, value: str) -> User | None:
        """Fetch one user by name, email (case-insensitive) or signup token."""
        if field not in LOOKUP_FIELDS:
            raise StorageError(f"Unsupported lookup field: {field}.")
        column = getattr(User, field)
        if field == "email":
            condition = func.lower(column) == value.lower()
        else:
            condition = column == value
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(User).where(condition))
                return result.scalars().first()
        except SQLAlchemyError as exc:
            raise StorageError("User lookup failed.") from exc

    async def save(self, name: str | None, email: str | None, password: str) -> User:
        """Insert a new unverified user with a bcrypt password hash."""
        user = User(
            name=name,
            email=email,
            password_hash=self.hash_password(password),
            account_invalid=False,
            account_locked=False,
            email_verified=False,
        )
        try:
            async with self._session_factory() as session:
                session.add(user)
                try:
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
                await session.refresh(user)
        except IntegrityError as exc:
            raise ConflictError("Account already registered.") from exc
        except SQLAlchemyError as exc:
            raise StorageError("Saving user failed.") from exc
        return user

    async def update(self, user: User) -> User:
        """Merge and commit changes made to a detached user."""
        try:
            async with self._session_factory() as session:
                merged = await session.merge(user)
                try:
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
                await session.refresh(merged)
        except IntegrityError as exc:
            raise ConflictError("Account already registered.") from exc
        except SQLAlchemyError as exc:
            raise StorageError("Updating user failed.") from exc
        return merged

    def hash_password(self, password: str) -> str:
        """Generate a bcrypt hash for the provided password."""
        return str(self._password_context.hash(password))

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against the stored bcrypt hash."""
        return bool(self._password_context.verify(password, password_hash))
