"""
Pydantic schemas for access requests.
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator


class PropertyRequestCreate(BaseModel):
    property_id: int
    message: str = Field(..., min_length=1, max_length=2000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message must not be blank")
        return value


class PropertyRequestRespond(BaseModel):
    decision: Literal["approved", "rejected"]
    response_message: Optional[str] = Field(None, max_length=2000)


class PropertyRequestOut(BaseModel):
    id: str
    property_id: int
    requester_id: int
    owner_id: int
    status: Literal["pending", "approved", "rejected"]
    message: str
    requested_at: datetime
    responded_at: Optional[datetime] = None
    response_message: Optional[str] = None
    chat_enabled: bool

    class Config:
        from_attributes = True
