"""
Pydantic schemas for receipts.
"""
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from propfind.helpers.validators import validate_wallet_address

ReceiptStatus = Literal["pending", "approved", "rejected"]
ReceiptSort = Literal["newest", "oldest", "price", "price-low", "name"]


class ReceiptGenerateIn(BaseModel):
    property_id: int
    # Falls back to the wallet connected on the user's profile
    user_address: Optional[str] = None

    @field_validator("user_address")
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not validate_wallet_address(value):
            raise ValueError("user_address must be 0x followed by 40 hex characters")
        return value


class ReceiptIn(BaseModel):
    """A receipt as produced by generation, saved idempotently by id."""
    id: str = Field(..., pattern=r"^PF-[0-9A-Z]+-[0-9A-Z]+$", max_length=40)
    property_id: int
    user_address: str
    timestamp: datetime
    status: ReceiptStatus = "pending"
    transaction_hash: str = Field(..., pattern=r"^0x[0-9a-f]{64}$")
    property_snapshot: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_address")
    @classmethod
    def check_address(cls, value: str) -> str:
        if not validate_wallet_address(value):
            raise ValueError("user_address must be 0x followed by 40 hex characters")
        return value


class ReceiptOut(ReceiptIn):
    user_id: int

    class Config:
        from_attributes = True


class ReceiptSummary(BaseModel):
    all: int
    pending: int
    approved: int
    rejected: int
