"""SQLAlchemy adapter for account credential lookups and writes."""

from __future__ import annotations

from datetime import datetime
from typing import cast

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from persona_server.application.ports.account_repository_port import (
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountCredential,
    AccountRepositoryPort,
)
from persona_server.infrastructure.db.metadata import users
from persona_server.infrastructure.db.timestamps import format_rfc3339_nano


class SqlAlchemyAccountRepository(AccountRepositoryPort):
    """Account repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_credential(self, *, identifier_or_email: str) -> AccountCredential | None:
        """Return stored credential matching either the identifier or the email."""

        statement = sa.select(users.c.user_id, users.c.password).where(
            sa.or_(
                users.c.user_id == identifier_or_email,
                users.c.email == identifier_or_email,
            )
        ).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return AccountCredential(
            identifier=cast(str, row["user_id"]),
            encoded_credential=cast(str, row["password"]),
        )

    async def identifier_exists(self, *, identifier: str) -> bool:
        return await self._exists(users.c.user_id == identifier)

    async def email_exists(self, *, email: str) -> bool:
        return await self._exists(users.c.email == email)

    async def insert_account(self, payload: AccountCreateInput) -> None:
        """Insert one account row, reporting unique violations as a domain error."""

        created_at = format_rfc3339_nano(payload.created_at)
        statement = sa.insert(users).values(
            user_id=payload.identifier,
            email=payload.email,
            screen_name=payload.display_name,
            password=payload.encoded_credential,
            created_at=created_at,
            updated_at=created_at,
        )

        async with self._session_factory() as session:
            try:
                await session.execute(statement)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise AccountAlreadyExistsError(payload.identifier) from exc

    async def touch_updated_at(self, *, identifier: str, now: datetime) -> None:
        statement = (
            sa.update(users)
            .where(users.c.user_id == identifier)
            .values(updated_at=format_rfc3339_nano(now))
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def _exists(self, condition: sa.ColumnElement[bool]) -> bool:
        statement = sa.select(sa.func.count()).select_from(users).where(condition)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return int(result.scalar_one()) > 0
