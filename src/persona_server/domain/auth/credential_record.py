"""Self-describing Argon2id credential record and derivation parameters."""

from __future__ import annotations

from dataclasses import dataclass

ARGON2ID_ALGORITHM_TAG = "argon2id"
ARGON2_VERSION = 0x13


@dataclass(frozen=True)
class Argon2Parameters:
    """Tunable work factors used when deriving a new credential."""

    memory_cost: int = 64 * 1024
    time_cost: int = 3
    parallelism: int = 2
    salt_length: int = 16
    key_length: int = 32

    def __post_init__(self) -> None:
        for name in ("memory_cost", "time_cost", "parallelism", "salt_length", "key_length"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer")


DEFAULT_ARGON2_PARAMETERS = Argon2Parameters()


@dataclass(frozen=True)
class CredentialRecord:
    """One stored password secret, re-derivable from its own fields."""

    memory_cost: int
    time_cost: int
    parallelism: int
    salt: bytes
    hash: bytes
    algorithm_tag: str = ARGON2ID_ALGORITHM_TAG
    version: int = ARGON2_VERSION

    @property
    def parameters(self) -> Argon2Parameters:
        """Return the parameters implied by this record, lengths taken from its bytes."""

        return Argon2Parameters(
            memory_cost=self.memory_cost,
            time_cost=self.time_cost,
            parallelism=self.parallelism,
            salt_length=len(self.salt),
            key_length=len(self.hash),
        )
