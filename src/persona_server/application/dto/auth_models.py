"""Pydantic models for login, registration and identity HTTP contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class LoginRequest(StrictModel):
    """Login credentials; the identifier may also be the account email."""

    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(StrictModel):
    token: str


class RegisterRequest(StrictModel):
    """Account registration payload."""

    identifier: str = Field(min_length=1, max_length=64)
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1, max_length=128)


class RegisterResponse(StrictModel):
    account_url: str


class IdentityResponse(StrictModel):
    """Identity resolved from a verified bearer token."""

    identifier: str
    expires_at: datetime
