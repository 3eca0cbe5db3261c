"""
Pydantic schemas for authentication.
"""
from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str


class Login(BaseModel):
    email: EmailStr
    password: str = Field(..., max_length=72)


class LoginStatusOut(BaseModel):
    """Login gate state for a subject; block_time_left_ms is 0 when not blocked."""
    blocked: bool
    attempts_left: int
    block_time_left_ms: int = 0
