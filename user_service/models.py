"""
Pydantic models for request/response schemas.

Field names on the wire follow the storefront client: ``_id``, ``isAdmin``,
``createdAt`` and friends. Models accept either the alias or the Python name.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _blank_to_none(value):
    # Storefront forms submit "" for untouched fields
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Request Models


class UserLogin(BaseModel):
    """Model for user sign in. A malformed email is just an unknown one."""

    email: str
    password: str


class UserRegister(BaseModel):
    """Model for user registration."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Model for a user updating their own profile. Empty values are ignored."""

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None

    @field_validator("name", "email", "phone", "password", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class AdminUserUpdate(BaseModel):
    """Model for an administrator updating any user."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    is_admin: Optional[bool] = Field(default=None, alias="isAdmin")

    @field_validator("name", "email", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class AddressInput(BaseModel):
    """Model for creating or updating an address."""

    province: Optional[str] = None
    city: Optional[str] = None
    block: Optional[str] = None
    street: Optional[str] = None
    house: Optional[str] = None


# Response Models


class UserSummary(BaseModel):
    """Identity fields returned by login, registration and profile updates."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    is_admin: bool = Field(default=False, alias="isAdmin")


class UserProfileResponse(BaseModel):
    """Profile returned to the signed-in user."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="_id")
    name: str
    email: str
    is_admin: bool = Field(default=False, alias="isAdmin")


class AdminUserResponse(UserProfileResponse):
    """User returned after an administrative update."""


class UserDetail(BaseModel):
    """Full user record without the password hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    is_admin: bool = Field(default=False, alias="isAdmin")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class UserListResponse(BaseModel):
    """One page of users."""

    model_config = ConfigDict(populate_by_name=True)

    users: List[UserDetail]
    total_users: int = Field(..., alias="totalUsers")
    page: int
    pages: int


class AddressResponse(BaseModel):
    """Address record."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="_id")
    user: UUID
    province: Optional[str] = None
    city: Optional[str] = None
    block: Optional[str] = None
    street: Optional[str] = None
    house: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str


def user_row_to_model(row: dict, model: type):
    """Build a response model from a ``users`` row."""
    return model(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone=row.get("phone"),
        is_admin=row.get("is_admin", False),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def address_row_to_model(row: dict) -> AddressResponse:
    """Build an ``AddressResponse`` from an ``addresses`` row."""
    return AddressResponse(
        id=row["id"],
        user=row["user_id"],
        province=row.get("province"),
        city=row.get("city"),
        block=row.get("block"),
        street=row.get("street"),
        house=row.get("house"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )
