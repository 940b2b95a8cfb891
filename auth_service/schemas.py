"""Pydantic schemas for request/response validation in the Auth Service."""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional

# --- User schemas ---

class LoginRequest(BaseModel):
    """Credentials accepted by both login endpoints."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Email and password are required")
        return value


class SignupRequest(BaseModel):
    """Data required to create a new account."""
    full_name: str = Field(..., alias="fullName", min_length=2)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    mobile_number: str = Field(..., alias="mobileNumber", min_length=10, max_length=15)
    location: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    """Public view of a user; never carries the password hash."""
    id: int
    full_name: str = Field(..., serialization_alias="fullName")
    email: str
    mobile_number: Optional[str] = Field(None, serialization_alias="mobileNumber")
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# --- Token schemas ---

class AuthResponse(BaseModel):
    """Body returned after a successful login or signup."""
    success: bool = True
    token: str
    user: UserResponse
    message: Optional[str] = None


class TokenPayload(BaseModel):
    """Decoded claims of a valid session token."""
    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    exp: Optional[int] = None
