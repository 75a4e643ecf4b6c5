"""Port for minting signed bearer tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class TokenSigningError(RuntimeError):
    """Raised when a token cannot be signed with the configured private key."""


@dataclass(frozen=True)
class IssuedToken:
    """Compact signed token and the validity window it encodes."""

    token: str
    audience: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime


class TokenIssuerPort(Protocol):
    """Bearer token issuance contract."""

    def issue(self, identity: str) -> IssuedToken:
        """Sign a short-lived token bound to one identity."""
