"""
Receipts API Endpoints

The current user's receipt mailbox. Receipts are scoped to their owner:
other users' receipts are invisible and cannot be overwritten or removed.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.api.dependencies import get_current_user, get_db
from propfind.models.listing import Listing
from propfind.models.user import User
from propfind.schemas.receipt import (
    ReceiptGenerateIn,
    ReceiptIn,
    ReceiptOut,
    ReceiptSort,
    ReceiptStatus,
    ReceiptSummary,
)
from propfind.services import receipts as receipt_service
from propfind.services.receipts import ReceiptNotFoundError, ReceiptOwnershipError

router = APIRouter()


async def _save(db: AsyncSession, owner_id: int, data: ReceiptIn):
    try:
        return await receipt_service.save_receipt(db, owner_id, data)
    except ReceiptOwnershipError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Receipt id already in use")


@router.post("/generate", response_model=ReceiptOut, status_code=status.HTTP_201_CREATED)
async def generate_receipt(
    payload: ReceiptGenerateIn,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate a receipt for a listing and save it to the mailbox."""
    owner_id = current_user.id
    user_address = payload.user_address or current_user.wallet_address
    if not user_address:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Connect a wallet first")

    listing = await db.get(Listing, payload.property_id)
    if not listing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")

    data = receipt_service.generate_receipt(listing, user_address)
    return await _save(db, owner_id, data)


@router.post("/", response_model=ReceiptOut)
async def save_receipt(
    payload: ReceiptIn,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save a receipt; saving an existing id updates that receipt."""
    return await _save(db, current_user.id, payload)


@router.get("/", response_model=List[ReceiptOut])
async def list_receipts(
    search: Optional[str] = None,
    status_filter: Optional[ReceiptStatus] = Query(None, alias="status"),
    sort: ReceiptSort = "newest",
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await receipt_service.list_receipts(
        db, current_user.id, search=search, status=status_filter, sort=sort
    )


@router.get("/summary", response_model=ReceiptSummary)
async def receipt_summary(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await receipt_service.receipt_summary(db, current_user.id)


@router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_receipt(
    receipt_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await receipt_service.remove_receipt(db, current_user.id, receipt_id)
    except ReceiptNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
