"""
Listing factory for test data generation.
"""

import factory
from factory import fuzzy
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.models.listing import Listing


class ListingFactory(factory.Factory):
    """
    Factory for Listing model.

    owner_id has no default: every listing belongs to a user.
    """

    class Meta:
        model = Listing

    id = factory.Sequence(lambda n: n + 1)
    title = factory.Faker("sentence", nb_words=4)
    location = factory.Faker("city")
    state = factory.Faker("state_abbr")
    price = fuzzy.FuzzyFloat(300, 3000)
    image_url = None
    description = factory.Faker("paragraph")

    @classmethod
    async def create_async(
        cls,
        db_session: AsyncSession,
        **kwargs
    ) -> Listing:
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()
        return instance
