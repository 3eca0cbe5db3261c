"""
Integration tests for listing endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import ListingFactory


@pytest.mark.asyncio
class TestListingsCrud:

    async def test_create_listing_sets_owner(self, client: AsyncClient, owner_auth_headers, owner):
        response = await client.post(
            "/api/listings/",
            headers=owner_auth_headers,
            json={"title": "Two-bed flat", "location": "Loyveil", "price": 900},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["owner_id"] == owner.id
        assert data["title"] == "Two-bed flat"

    async def test_create_requires_authentication(self, client: AsyncClient):
        response = await client.post(
            "/api/listings/",
            json={"title": "Two-bed flat", "location": "Loyveil", "price": 900},
        )

        assert response.status_code == 401

    async def test_create_rejects_negative_price(self, client: AsyncClient, owner_auth_headers):
        response = await client.post(
            "/api/listings/",
            headers=owner_auth_headers,
            json={"title": "Two-bed flat", "location": "Loyveil", "price": -1},
        )

        assert response.status_code == 422

    async def test_get_listing(self, client: AsyncClient, listing):
        response = await client.get(f"/api/listings/{listing.id}")

        assert response.status_code == 200
        assert response.json()["title"] == listing.title

    async def test_get_missing_listing(self, client: AsyncClient):
        response = await client.get("/api/listings/9999")

        assert response.status_code == 404

    async def test_list_filters_by_owner(self, client: AsyncClient, db_session: AsyncSession, owner, user):
        await ListingFactory.create_async(db_session, owner_id=owner.id)
        await ListingFactory.create_async(db_session, owner_id=owner.id)
        await ListingFactory.create_async(db_session, owner_id=user.id)
        await db_session.commit()

        everything = await client.get("/api/listings/")
        mine = await client.get("/api/listings/", params={"owner_id": owner.id})

        assert len(everything.json()) == 3
        assert len(mine.json()) == 2
        assert all(item["owner_id"] == owner.id for item in mine.json())
