from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from persona_server.infrastructure.security.key_provider import SigningKeyPair


def _generate_key_pair() -> SigningKeyPair:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return SigningKeyPair(private_key=private_key, public_key=private_key.public_key())


@pytest.fixture(scope="session")
def signing_key_pair() -> SigningKeyPair:
    return _generate_key_pair()


@pytest.fixture(scope="session")
def other_signing_key_pair() -> SigningKeyPair:
    return _generate_key_pair()


@pytest.fixture
def key_files(tmp_path: Path, signing_key_pair: SigningKeyPair) -> tuple[Path, Path]:
    private_path = tmp_path / "private-key.pem"
    public_path = tmp_path / "public-key.pem"
    private_path.write_bytes(
        signing_key_pair.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        signing_key_pair.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return private_path, public_path
