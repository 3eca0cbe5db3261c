"""
Unit tests for receipt id, hash and snapshot generation.
"""

import re
from datetime import datetime, timezone

from propfind.models.listing import Listing
from propfind.services.receipts import (
    generate_receipt,
    generate_receipt_id,
    generate_transaction_hash,
    to_base36,
)

RECEIPT_ID_RE = re.compile(r"^PF-[0-9A-Z]+-[0-9A-Z]{9}$")


class TestBase36:

    def test_small_values(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_round_trips_with_int(self):
        value = 1767268800000
        assert int(to_base36(value), 36) == value


class TestReceiptIds:

    def test_format(self):
        assert RECEIPT_ID_RE.match(generate_receipt_id())

    def test_timestamp_part_encodes_milliseconds(self):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

        receipt_id = generate_receipt_id(now)

        timestamp_part = receipt_id.split("-")[1]
        assert int(timestamp_part, 36) == int(now.timestamp() * 1000)

    def test_ids_are_unique(self):
        ids = {generate_receipt_id() for _ in range(200)}
        assert len(ids) == 200

    def test_transaction_hash_format(self):
        tx_hash = generate_transaction_hash()
        assert re.match(r"^0x[0-9a-f]{64}$", tx_hash)


class TestGenerateReceipt:

    def test_copies_listing_into_snapshot(self):
        listing = Listing(id=7, title="Loft", location="Loyveil", state="LV", price=820.0, owner_id=1)
        now = datetime(2026, 2, 2, tzinfo=timezone.utc)
        address = "0x" + "1" * 40

        receipt = generate_receipt(listing, address, now=now)

        assert receipt.property_id == 7
        assert receipt.user_address == address
        assert receipt.timestamp == now
        assert receipt.status == "pending"
        assert receipt.property_snapshot["title"] == "Loft"
        assert receipt.property_snapshot["price"] == 820.0
        assert RECEIPT_ID_RE.match(receipt.id)
