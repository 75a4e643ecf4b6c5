"""Argon2id password hasher adapter."""

from __future__ import annotations

import hmac
import secrets

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from persona_server.application.ports.password_hasher_port import PasswordHasherPort
from persona_server.domain.auth.credential_codec import (
    MalformedCredentialError,
    decode_credential,
    encode_credential,
)
from persona_server.domain.auth.credential_record import (
    ARGON2_VERSION,
    DEFAULT_ARGON2_PARAMETERS,
    Argon2Parameters,
    CredentialRecord,
)


class Argon2PasswordHasher(PasswordHasherPort):
    """Password hashing adapter producing self-describing Argon2id credentials."""

    def derive(
        self,
        password: str,
        parameters: Argon2Parameters = DEFAULT_ARGON2_PARAMETERS,
    ) -> str:
        salt = secrets.token_bytes(parameters.salt_length)
        digest = _argon2id(password=password, salt=salt, parameters=parameters)
        return encode_credential(
            CredentialRecord(
                memory_cost=parameters.memory_cost,
                time_cost=parameters.time_cost,
                parallelism=parameters.parallelism,
                salt=salt,
                hash=digest,
            )
        )

    def verify(self, *, password: str, encoded_credential: str) -> bool:
        """Recompute with the stored record's own parameters and compare in constant time."""

        record = decode_credential(encoded_credential)
        try:
            candidate = _argon2id(
                password=password,
                salt=record.salt,
                parameters=record.parameters,
            )
        except (HashingError, OverflowError) as exc:
            raise MalformedCredentialError("stored parameters are not derivable") from exc
        return hmac.compare_digest(candidate, record.hash)


def _argon2id(*, password: str, salt: bytes, parameters: Argon2Parameters) -> bytes:
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=parameters.time_cost,
        memory_cost=parameters.memory_cost,
        parallelism=parameters.parallelism,
        hash_len=parameters.key_length,
        type=Type.ID,
        version=ARGON2_VERSION,
    )
