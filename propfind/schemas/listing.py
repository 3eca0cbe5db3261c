"""
Pydantic schemas for Listing entities.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ListingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    state: Optional[str] = Field(None, max_length=50)
    price: float = Field(..., ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None


class ListingCreate(ListingBase):
    pass


class ListingOut(ListingBase):
    id: int
    owner_id: int
    created_at: datetime

    class Config:
        from_attributes = True
