"""Port for password derivation and verification."""

from __future__ import annotations

from typing import Protocol

from persona_server.domain.auth.credential_record import (
    DEFAULT_ARGON2_PARAMETERS,
    Argon2Parameters,
)


class PasswordHasherPort(Protocol):
    """Password derivation/verification contract."""

    def derive(
        self,
        password: str,
        parameters: Argon2Parameters = DEFAULT_ARGON2_PARAMETERS,
    ) -> str:
        """Derive an encoded credential for storage from a plaintext password."""

    def verify(self, *, password: str, encoded_credential: str) -> bool:
        """Verify plaintext password against one stored encoded credential."""
