"""
Access request factory for test data generation.
"""

import uuid
import factory
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.models.property_request import PropertyRequest, RequestStatus


class PropertyRequestFactory(factory.Factory):
    """
    Factory for PropertyRequest model.

    Pass property_id, requester_id and owner_id; the request starts pending.
    """

    class Meta:
        model = PropertyRequest

    id = factory.LazyFunction(lambda: str(uuid.uuid4()))
    status = RequestStatus.PENDING.value
    message = factory.Faker("sentence")
    response_message = None
    requested_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    responded_at = None

    @classmethod
    async def create_async(
        cls,
        db_session: AsyncSession,
        **kwargs
    ) -> PropertyRequest:
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()
        return instance
