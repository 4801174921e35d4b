from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

UserRole = Literal["admin", "vendor", "customer", "event_organizer"]
VendorStatus = Literal["pending", "approved", "rejected"]
BusinessType = Literal["homestay", "restaurant", "driver", "event_services"]


class User(BaseModel):
    id: int | str
    email: str
    name: str = ""
    phone: str | None = None
    role: UserRole
    avatar_url: str | None = None
    is_verified: bool = False
    vendor_status: VendorStatus | None = None
    business_name: str | None = None
    business_type: BusinessType | None = None
    # Derived from role on login/restore, never trusted from the server.
    permissions: list[str] = Field(default_factory=list)

    model_config = {"extra": "ignore", "frozen": True}


class AuthEnvelope(BaseModel):
    """Response envelope used by every endpoint of the auth API."""

    success: bool = False
    message: str | None = None
    data: Any = None


class VerifyData(BaseModel):
    user: User


class AuthResult(BaseModel):
    token: str
    user: User


class EmailLoginPayload(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RegisterPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone: str | None = None
    role: UserRole = "customer"

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class OAuthLoginPayload(BaseModel):
    token: str = Field(..., min_length=1)
    user_info: dict | None = Field(None, alias="userInfo")

    model_config = {"populate_by_name": True}


class SessionState(BaseModel):
    loading: bool
    is_authenticated: bool
    user: User | None = None
