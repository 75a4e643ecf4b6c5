"""Encode and decode the `$argon2id$v=..$m=..,t=..,p=..$salt$hash` credential format."""

from __future__ import annotations

import base64
import binascii
import re

from persona_server.domain.auth.credential_record import (
    ARGON2_VERSION,
    ARGON2ID_ALGORITHM_TAG,
    CredentialRecord,
)

_FIELD_SEPARATOR = "$"
_FIELD_COUNT = 6
_VERSION_PATTERN = re.compile(r"v=([0-9]+)")
_PARAMETERS_PATTERN = re.compile(r"m=([0-9]+),t=([0-9]+),p=([0-9]+)")
# Argon2 work factors are unsigned 32-bit integers.
_MAX_PARAMETER = 2**32 - 1
# Argon2 lower bounds for salt and output lengths.
_MIN_SALT_LENGTH = 8
_MIN_HASH_LENGTH = 4


class CredentialDecodeError(ValueError):
    """Raised when an encoded credential cannot be turned back into a record."""


class MalformedCredentialError(CredentialDecodeError):
    """Raised when the encoded credential does not have the expected shape."""


class UnsupportedCredentialVersionError(CredentialDecodeError):
    """Raised when the embedded Argon2 version is not the one this build supports."""

    def __init__(self, *, version: int) -> None:
        super().__init__(f"unsupported argon2 version: {version}")
        self.version = version


class InvalidCredentialEncodingError(CredentialDecodeError):
    """Raised when the salt or hash field is not valid unpadded base64."""


def encode_credential(record: CredentialRecord) -> str:
    """Serialize one credential record into its persisted textual form."""

    return (
        f"${record.algorithm_tag}$v={record.version}"
        f"$m={record.memory_cost},t={record.time_cost},p={record.parallelism}"
        f"${_b64encode(record.salt)}${_b64encode(record.hash)}"
    )


def decode_credential(encoded: str) -> CredentialRecord:
    """Parse one persisted credential, failing closed on any deviation."""

    fields = encoded.split(_FIELD_SEPARATOR)
    if len(fields) != _FIELD_COUNT:
        raise MalformedCredentialError(
            f"expected {_FIELD_COUNT} fields, got {len(fields)}"
        )

    leading, algorithm_tag, raw_version, raw_parameters, raw_salt, raw_hash = fields
    if leading:
        raise MalformedCredentialError("credential must start with the field separator")
    if algorithm_tag != ARGON2ID_ALGORITHM_TAG:
        raise MalformedCredentialError(f"unknown algorithm tag: {algorithm_tag!r}")

    version_match = _VERSION_PATTERN.fullmatch(raw_version)
    if version_match is None:
        raise MalformedCredentialError("invalid version field")
    version = int(version_match.group(1))
    if version != ARGON2_VERSION:
        raise UnsupportedCredentialVersionError(version=version)

    parameters_match = _PARAMETERS_PATTERN.fullmatch(raw_parameters)
    if parameters_match is None:
        raise MalformedCredentialError("invalid parameters field")
    memory_cost, time_cost, parallelism = (int(value) for value in parameters_match.groups())
    if min(memory_cost, time_cost, parallelism) <= 0:
        raise MalformedCredentialError("parameters must be positive integers")
    if max(memory_cost, time_cost, parallelism) > _MAX_PARAMETER:
        raise MalformedCredentialError("parameters must fit in 32 bits")

    salt = _b64decode(raw_salt, field="salt")
    digest = _b64decode(raw_hash, field="hash")
    if len(salt) < _MIN_SALT_LENGTH or len(digest) < _MIN_HASH_LENGTH:
        raise MalformedCredentialError("salt or hash is too short")

    return CredentialRecord(
        algorithm_tag=algorithm_tag,
        version=version,
        memory_cost=memory_cost,
        time_cost=time_cost,
        parallelism=parallelism,
        salt=salt,
        hash=digest,
    )


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii").rstrip("=")


def _b64decode(value: str, *, field: str) -> bytes:
    """Decode standard-alphabet base64 that was written without padding."""

    if "=" in value:
        raise InvalidCredentialEncodingError(f"{field} must not carry base64 padding")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InvalidCredentialEncodingError(f"{field} is not valid base64") from exc
