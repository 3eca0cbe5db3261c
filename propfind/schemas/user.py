"""
Pydantic schemas for User entities.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from propfind.helpers.validators import validate_wallet_address


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr


class UserCreate(UserBase):
    """Registration payload; the code comes from POST /api/verification/send."""
    password: str = Field(..., min_length=8, max_length=72)
    verification_code: str = Field(..., pattern=r"^\d{6}$")


class UserOut(UserBase):
    id: int
    is_admin: bool
    wallet_address: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WalletUpdate(BaseModel):
    """Connect (address) or disconnect (null) a wallet."""
    wallet_address: Optional[str] = None

    @field_validator("wallet_address")
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        if not validate_wallet_address(value):
            raise ValueError("wallet_address must be 0x followed by 40 hex characters")
        return value.lower() if value else value
