"""
Listings API Endpoints

Community listings owned by the uploading user.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.api.dependencies import get_current_user, get_db
from propfind.models.listing import Listing
from propfind.models.user import User
from propfind.schemas.listing import ListingCreate, ListingOut

router = APIRouter()


@router.get("/", response_model=List[ListingOut])
async def list_listings(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    owner_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    query = select(Listing)
    if owner_id:
        query = query.filter(Listing.owner_id == owner_id)
    query = query.order_by(Listing.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=ListingOut, status_code=status.HTTP_201_CREATED)
async def create_listing(
    listing_data: ListingCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The creator becomes the owner who answers access requests."""
    listing = Listing(**listing_data.model_dump(), owner_id=current_user.id)
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    return listing


@router.get("/{listing_id}", response_model=ListingOut)
async def get_listing(listing_id: int, db: AsyncSession = Depends(get_db)):
    listing = await db.get(Listing, listing_id)
    if not listing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found"
        )
    return listing
