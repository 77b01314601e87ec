"""Pydantic schemas for registration, login and profile endpoints."""
from pydantic import BaseModel, ConfigDict


class RegisterRequest(BaseModel):
    """
    Body of POST /api/register.

    Fields are optional at the schema level so a missing field produces the
    same 400 message as an empty one.
    """

    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    """Body of POST /api/login."""

    email: str | None = None
    password: str | None = None


class UserPublic(BaseModel):
    """Public projection of a user; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class RegisterResponse(BaseModel):
    """Schema for a successful registration."""

    message: str
    user: UserPublic


class LoginResponse(BaseModel):
    """Schema for a successful login."""

    token: str
    user: UserPublic
