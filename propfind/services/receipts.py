"""
Receipts: display records for simulated payments and contact requests.

Receipt ids (``PF-<base36 ms>-<random>``) and transaction hashes are random
strings. They look like ledger artifacts but are not signed or verifiable.
"""
import secrets
import string
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.logging import get_logger
from propfind.models.listing import Listing
from propfind.models.property_request import RequestStatus
from propfind.models.receipt import Receipt
from propfind.schemas.receipt import ReceiptIn

logger = get_logger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
RANDOM_SUFFIX_LENGTH = 9


class ReceiptError(Exception):
    pass


class ReceiptNotFoundError(ReceiptError):
    pass


class ReceiptOwnershipError(ReceiptError):
    """The receipt id already belongs to another user."""


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_receipt_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = to_base36(int(now.timestamp() * 1000))
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"PF-{timestamp}-{suffix}".upper()


def generate_transaction_hash() -> str:
    return "0x" + secrets.token_hex(32)


def generate_receipt(listing: Listing, user_address: str, now: Optional[datetime] = None) -> ReceiptIn:
    now = now or datetime.now(timezone.utc)
    return ReceiptIn(
        id=generate_receipt_id(now),
        property_id=listing.id,
        user_address=user_address,
        timestamp=now,
        status=RequestStatus.PENDING.value,
        transaction_hash=generate_transaction_hash(),
        property_snapshot=listing.snapshot(),
    )


async def _update_existing(db: AsyncSession, receipt: Receipt, owner_id: int, data: ReceiptIn) -> Receipt:
    if receipt.user_id != owner_id:
        raise ReceiptOwnershipError(data.id)
    for field, value in data.model_dump(exclude={"id"}).items():
        setattr(receipt, field, value)
    await db.commit()
    await db.refresh(receipt)
    logger.info("Receipt updated", receipt_id=receipt.id)
    return receipt


async def save_receipt(db: AsyncSession, owner_id: int, data: ReceiptIn) -> Receipt:
    """
    Insert ``data`` for ``owner_id``; an existing id is updated in place.

    A uniqueness violation from a concurrent insert of the same id is
    converted into the same update.
    """
    existing = await db.get(Receipt, data.id)
    if existing:
        return await _update_existing(db, existing, owner_id, data)

    receipt = Receipt(user_id=owner_id, **data.model_dump())
    db.add(receipt)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Receipt insert raced, updating instead", receipt_id=data.id)
        existing = await db.get(Receipt, data.id)
        if existing is None:
            raise
        return await _update_existing(db, existing, owner_id, data)

    await db.refresh(receipt)
    logger.info("Receipt saved", receipt_id=receipt.id, property_id=receipt.property_id)
    return receipt


async def remove_receipt(db: AsyncSession, owner_id: int, receipt_id: str) -> None:
    result = await db.execute(
        select(Receipt).filter(Receipt.id == receipt_id, Receipt.user_id == owner_id)
    )
    receipt = result.scalar_one_or_none()
    if not receipt:
        raise ReceiptNotFoundError(receipt_id)
    await db.delete(receipt)
    await db.commit()
    logger.info("Receipt removed", receipt_id=receipt_id)


def _matches_search(receipt: Receipt, query: str) -> bool:
    snapshot = receipt.property_snapshot or {}
    haystacks = [
        str(snapshot.get("title") or ""),
        str(snapshot.get("location") or ""),
        receipt.id or "",
    ]
    return any(query in value.lower() for value in haystacks)


def _price(receipt: Receipt) -> float:
    return float((receipt.property_snapshot or {}).get("price") or 0)


def _title(receipt: Receipt) -> str:
    return str((receipt.property_snapshot or {}).get("title") or "").lower()


async def list_receipts(
    db: AsyncSession,
    owner_id: int,
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort: str = "newest",
) -> List[Receipt]:
    """
    The owner's mailbox: search over title, location and id, status filter,
    and one of the sort orders newest, oldest, price (high first),
    price-low and name (A-Z).
    """
    query = select(Receipt).filter(Receipt.user_id == owner_id)
    if status:
        query = query.filter(Receipt.status == status)
    result = await db.execute(query)
    receipts = list(result.scalars().all())

    if search:
        needle = search.strip().lower()
        receipts = [r for r in receipts if _matches_search(r, needle)]

    if sort == "oldest":
        receipts.sort(key=lambda r: r.timestamp)
    elif sort == "price":
        receipts.sort(key=_price, reverse=True)
    elif sort == "price-low":
        receipts.sort(key=_price)
    elif sort == "name":
        receipts.sort(key=_title)
    else:
        receipts.sort(key=lambda r: r.timestamp, reverse=True)
    return receipts


async def receipt_summary(db: AsyncSession, owner_id: int) -> Dict[str, int]:
    result = await db.execute(
        select(Receipt.status, func.count(Receipt.id))
        .filter(Receipt.user_id == owner_id)
        .group_by(Receipt.status)
    )
    counts = {status.value: 0 for status in RequestStatus}
    for status, count in result.all():
        counts[status] = count
    return {"all": sum(counts.values()), **counts}
