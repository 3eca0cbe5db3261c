"""
Pydantic schemas for the verification gate endpoints.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class VerificationSendIn(BaseModel):
    email: EmailStr


class VerificationSendOut(BaseModel):
    success: bool
    message: str
    expires_in: int
    # Only present when code echoing is enabled outside production
    code: Optional[str] = None


class VerificationCheckIn(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)


class VerificationCheckOut(BaseModel):
    verified: bool


class BlockStatusOut(BaseModel):
    blocked: bool
    remaining_ms: int
    resend_count: int
    message: Optional[str] = None


class SendVerificationEmailIn(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$")


class SendVerificationEmailOut(BaseModel):
    success: bool
    message: str
    code: Optional[str] = None
