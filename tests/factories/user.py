"""
User factory for test data generation.
"""

import factory
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.models.user import User
from propfind.core.security import get_password_hash

DEFAULT_PASSWORD = "Password123!"
# Hashed once, bcrypt is slow on purpose
DEFAULT_PASSWORD_HASH = get_password_hash(DEFAULT_PASSWORD)


class UserFactory(factory.Factory):
    """
    Factory for User model.

    Default password: "Password123!" (hashed)
    """

    class Meta:
        model = User

    id = factory.Sequence(lambda n: n + 1)
    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"student{n}@loyveil.edu")
    password = DEFAULT_PASSWORD_HASH
    is_admin = False
    wallet_address = None
    token_version = 1

    @classmethod
    async def create_async(
        cls,
        db_session: AsyncSession,
        **kwargs
    ) -> User:
        """
        Create user in database asynchronously.

        Args:
            db_session: AsyncSession instance
            **kwargs: Override factory attributes

        Returns:
            User instance (flushed, not committed)
        """
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()  # Get ID without committing transaction
        return instance
