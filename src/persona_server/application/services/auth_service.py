"""Application authentication service for login and account registration."""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from persona_server.application.ports.account_repository_port import (
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountRepositoryPort,
)
from persona_server.application.ports.password_hasher_port import PasswordHasherPort
from persona_server.application.ports.token_issuer_port import (
    IssuedToken,
    TokenIssuerPort,
    TokenSigningError,
)
from persona_server.domain.auth.credential_codec import CredentialDecodeError
from persona_server.domain.auth.identifiers import (
    build_account_url,
    normalize_email,
    normalize_identifier,
)

logger = logging.getLogger(__name__)


class LoginOutcome(StrEnum):
    """Supported login outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class LoginResult:
    """Login result model."""

    outcome: LoginOutcome
    token: IssuedToken | None = None


@dataclass(frozen=True)
class RegistrationResult:
    """Registration result model."""

    identifier: str
    account_url: str


class AccountConflictError(Exception):
    """Raised when a new account collides with an existing identifier or email."""

    def __init__(self, *, field: str) -> None:
        super().__init__(f"conflict {field}")
        self.field = field


class AuthInternalError(RuntimeError):
    """Raised when authentication cannot complete because of system state."""


class AuthService:
    """Authenticate credentials into bearer tokens and register new accounts."""

    def __init__(
        self,
        *,
        accounts: AccountRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_issuer: TokenIssuerPort,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._accounts = accounts
        self._password_hasher = password_hasher
        self._token_issuer = token_issuer
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._decoy_credential: str | None = None

    async def login(self, *, identifier: str, password: str) -> LoginResult:
        """Verify credentials and mint a bearer token on success.

        Unknown accounts and wrong passwords produce the same outcome. Unknown
        accounts are still run through one password verification against a
        decoy credential so response time does not reveal whether the
        identifier exists.
        """

        account = await self._accounts.find_credential(
            identifier_or_email=identifier.strip().lower(),
        )
        if account is None:
            await self._verify_against_decoy(password=password)
            logger.info("auth_login_failed reason=invalid_credentials")
            return LoginResult(outcome=LoginOutcome.INVALID_CREDENTIALS)

        try:
            matched = await asyncio.to_thread(
                self._password_hasher.verify,
                password=password,
                encoded_credential=account.encoded_credential,
            )
        except CredentialDecodeError as exc:
            logger.error(
                "auth_stored_credential_invalid identifier=%s error=%s",
                account.identifier,
                exc,
            )
            raise AuthInternalError("stored credential is invalid") from exc

        if not matched:
            logger.info("auth_login_failed reason=invalid_credentials")
            return LoginResult(outcome=LoginOutcome.INVALID_CREDENTIALS)

        await self._accounts.touch_updated_at(identifier=account.identifier, now=self._now())
        try:
            token = self._token_issuer.issue(account.identifier)
        except TokenSigningError as exc:
            logger.exception("auth_token_signing_failed identifier=%s", account.identifier)
            raise AuthInternalError("token signing failed") from exc

        logger.info("auth_login_success identifier=%s", account.identifier)
        return LoginResult(outcome=LoginOutcome.SUCCESS, token=token)

    async def register(
        self,
        *,
        identifier: str,
        email: str,
        password: str,
        display_name: str,
    ) -> RegistrationResult:
        """Validate uniqueness, derive a credential and persist one new account."""

        normalized_identifier = normalize_identifier(identifier=identifier)
        normalized_email = normalize_email(email=email)
        if not password:
            raise ValueError("password cannot be blank")

        if await self._accounts.identifier_exists(identifier=normalized_identifier):
            raise AccountConflictError(field="userid")
        if await self._accounts.email_exists(email=normalized_email):
            raise AccountConflictError(field="mail address")

        encoded_credential = await asyncio.to_thread(self._password_hasher.derive, password)
        try:
            await self._accounts.insert_account(
                AccountCreateInput(
                    identifier=normalized_identifier,
                    email=normalized_email,
                    display_name=display_name,
                    encoded_credential=encoded_credential,
                    created_at=self._now(),
                )
            )
        except AccountAlreadyExistsError as exc:
            raise AccountConflictError(field="userid") from exc

        logger.info("auth_account_registered identifier=%s", normalized_identifier)
        return RegistrationResult(
            identifier=normalized_identifier,
            account_url=build_account_url(identifier=normalized_identifier),
        )

    async def _verify_against_decoy(self, *, password: str) -> None:
        if self._decoy_credential is None:
            self._decoy_credential = await asyncio.to_thread(
                self._password_hasher.derive,
                secrets.token_urlsafe(32),
            )
        await asyncio.to_thread(
            self._password_hasher.verify,
            password=password,
            encoded_credential=self._decoy_credential,
        )
