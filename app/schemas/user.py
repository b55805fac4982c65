"""Pydantic schemas for accounts and profiles."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    display_name: str
    address: str
    email: EmailStr
    password: str
    confirm_password: str


class SignUpResponse(BaseModel):
    uid: str
    email: str
    address: str
    verification_sent: bool = True


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class VerifyEmailRequest(BaseModel):
    token: str


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class UserPublic(BaseModel):
    uid: str
    display_name: str
    address: str
    bio: str = ""
    theme: str
    post_count: int = 0
    total_likes_received: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class UserResponse(UserPublic):
    """Own profile: adds private fields and the address cooldown."""
    email: str
    email_verified: bool = False
    address_last_changed_at: datetime | None = None
    next_address_change_at: datetime | None = None
    updated_at: datetime | None = None


class UserUpdate(BaseModel):
    display_name: str | None = None
    bio: str | None = None
    theme: str | None = None


class AddressChangeRequest(BaseModel):
    address: str = Field(..., min_length=1)


class AddressLookupResponse(BaseModel):
    address: str
    available: bool
    uid: str | None = None


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse | None = None


class TokenRefresh(BaseModel):
    refresh_token: str


class ReloadResponse(BaseModel):
    uid: str
    email_verified: bool
