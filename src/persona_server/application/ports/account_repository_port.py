"""Port for account credential lookups and writes used by authentication services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class AccountAlreadyExistsError(Exception):
    """Raised when an insert collides with an existing identifier or email."""


@dataclass(frozen=True)
class AccountCredential:
    """Stored identity and encoded credential for one account."""

    identifier: str
    encoded_credential: str


@dataclass(frozen=True)
class AccountCreateInput:
    """Input payload for inserting one account row."""

    identifier: str
    email: str
    display_name: str
    encoded_credential: str
    created_at: datetime


class AccountRepositoryPort(Protocol):
    """Account repository contract."""

    async def find_credential(self, *, identifier_or_email: str) -> AccountCredential | None:
        """Return stored credential for an identifier or email, or None."""

    async def identifier_exists(self, *, identifier: str) -> bool:
        """Return whether an account already uses the normalized identifier."""

    async def email_exists(self, *, email: str) -> bool:
        """Return whether an account already uses the normalized email."""

    async def insert_account(self, payload: AccountCreateInput) -> None:
        """Persist one new account row."""

    async def touch_updated_at(self, *, identifier: str, now: datetime) -> None:
        """Record the last successful authentication time of one account."""
