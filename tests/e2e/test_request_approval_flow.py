"""
End-to-end test for the access request lifecycle.

Two students register through the verification gate, one lists a room,
the other asks for contact, gets approved and keeps a receipt.
"""

import pytest
from httpx import AsyncClient

WALLET = "0x" + "9f" * 20


async def register(client: AsyncClient, name: str, email: str) -> dict:
    code = (await client.post("/api/verification/send", json={"email": email})).json()["code"]
    response = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "Student123!", "verification_code": code},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.e2e
@pytest.mark.asyncio
class TestRequestApprovalFlow:
    """Complete access request flow."""

    async def test_complete_approval_flow(self, client: AsyncClient):
        """
        1. Register owner and renter
        2. Owner lists a room
        3. Renter requests contact
        4. Owner sees the pending request and approves it
        5. Renter sees chat enabled; a second answer is refused
        6. Renter keeps a receipt in the mailbox
        """
        # Step 1: Register both users
        owner_headers = await register(client, "Olivia Owner", "olivia@loyveil.edu")
        renter_headers = await register(client, "Ravi Renter", "ravi@loyveil.edu")

        # Step 2: Owner creates a listing
        listing = await client.post(
            "/api/listings/",
            headers=owner_headers,
            json={"title": "Room by the library", "location": "Loyveil", "price": 540},
        )
        assert listing.status_code == 201
        listing_id = listing.json()["id"]

        # Step 3: Renter asks for contact
        created = await client.post(
            "/api/requests/",
            headers=renter_headers,
            json={"property_id": listing_id, "message": "Could I view it this week?"},
        )
        assert created.status_code == 201
        request_id = created.json()["id"]

        mine = await client.get("/api/requests/mine", headers=renter_headers, params={"property_id": listing_id})
        assert mine.json()["status"] == "pending"
        assert mine.json()["chat_enabled"] is False

        # Step 4: Owner approves
        pending = await client.get("/api/requests/owner", headers=owner_headers, params={"status": "pending"})
        assert [r["id"] for r in pending.json()] == [request_id]

        approved = await client.post(
            f"/api/requests/{request_id}/respond",
            headers=owner_headers,
            json={"decision": "approved", "response_message": "Thursday works"},
        )
        assert approved.status_code == 200

        # Step 5: Renter sees the outcome; the decision is final
        mine = await client.get("/api/requests/mine", headers=renter_headers, params={"property_id": listing_id})
        assert mine.json()["status"] == "approved"
        assert mine.json()["chat_enabled"] is True
        assert mine.json()["response_message"] == "Thursday works"

        again = await client.post(
            f"/api/requests/{request_id}/respond",
            headers=owner_headers,
            json={"decision": "rejected"},
        )
        assert again.status_code == 409

        # Step 6: Renter connects a wallet and keeps a receipt
        await client.put("/api/auth/me/wallet", headers=renter_headers, json={"wallet_address": WALLET})
        receipt = await client.post("/api/receipts/generate", headers=renter_headers, json={"property_id": listing_id})
        assert receipt.status_code == 201

        mailbox = await client.get("/api/receipts/", headers=renter_headers)
        assert [r["id"] for r in mailbox.json()] == [receipt.json()["id"]]

        summary = await client.get("/api/receipts/summary", headers=renter_headers)
        assert summary.json()["all"] == 1

    async def test_rejected_request_can_be_asked_again(self, client: AsyncClient):
        """Repeat requests are allowed; the renter view shows the latest."""
        owner_headers = await register(client, "Olivia Owner", "olivia@loyveil.edu")
        renter_headers = await register(client, "Ravi Renter", "ravi@loyveil.edu")
        listing_id = (await client.post(
            "/api/listings/",
            headers=owner_headers,
            json={"title": "Basement room", "location": "Loyveil", "price": 300},
        )).json()["id"]

        first = await client.post(
            "/api/requests/", headers=renter_headers, json={"property_id": listing_id, "message": "Hi"}
        )
        await client.post(
            f"/api/requests/{first.json()['id']}/respond", headers=owner_headers, json={"decision": "rejected"}
        )
        second = await client.post(
            "/api/requests/", headers=renter_headers, json={"property_id": listing_id, "message": "Hi again"}
        )

        mine = await client.get("/api/requests/mine", headers=renter_headers, params={"property_id": listing_id})
        assert mine.json()["id"] == second.json()["id"]
        assert mine.json()["status"] == "pending"
