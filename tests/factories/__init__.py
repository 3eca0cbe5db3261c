"""
Data factories for test data generation.

Factories use factory-boy to create realistic test data with sensible defaults.
All factories support async creation via create_async() method.

Usage:
    from tests.factories import UserFactory, ListingFactory

    # Create user
    user = await UserFactory.create_async(db_session, email="custom@loyveil.edu")

    # Create listing
    listing = await ListingFactory.create_async(db_session, owner_id=user.id)
"""

from tests.factories.user import UserFactory
from tests.factories.listing import ListingFactory
from tests.factories.property_request import PropertyRequestFactory
from tests.factories.receipt import ReceiptFactory

__all__ = [
    "UserFactory",
    "ListingFactory",
    "PropertyRequestFactory",
    "ReceiptFactory",
]
