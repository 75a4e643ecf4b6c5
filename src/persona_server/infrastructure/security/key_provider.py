"""Load the RSA key pair used to sign and verify bearer tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)


class KeyLoadError(RuntimeError):
    """Base error for signing-key loading failures."""


class KeyUnavailableError(KeyLoadError):
    """Raised when key material cannot be read from storage."""


class KeyMalformedError(KeyLoadError):
    """Raised when key material is not a parseable PEM RSA key."""


@dataclass(frozen=True)
class SigningKeyPair:
    """Process-wide token signing keys, read-only after startup."""

    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey


def load_private_key(path: str | Path) -> rsa.RSAPrivateKey:
    """Read and parse one PEM-encoded RSA private key."""

    pem = _read_key_file(path)
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyMalformedError(f"failed to parse private key: {path}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyMalformedError(f"private key is not RSA: {path}")
    return key


def load_public_key(path: str | Path) -> rsa.RSAPublicKey:
    """Read and parse one PEM-encoded RSA public key."""

    pem = _read_key_file(path)
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyMalformedError(f"failed to parse public key: {path}") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyMalformedError(f"public key is not RSA: {path}")
    return key


def load_signing_key_pair(
    *,
    private_key_path: str | Path,
    public_key_path: str | Path,
) -> SigningKeyPair:
    """Load both halves of the signing key pair once at process start."""

    key_pair = SigningKeyPair(
        private_key=load_private_key(private_key_path),
        public_key=load_public_key(public_key_path),
    )
    logger.info(
        "signing_keys_loaded private_key_path=%s public_key_path=%s key_size=%s",
        private_key_path,
        public_key_path,
        key_pair.private_key.key_size,
    )
    return key_pair


def _read_key_file(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise KeyUnavailableError(f"failed to read key file: {path}") from exc
