"""
Wallet ledger repository.

Append-only data access for WalletLedgerEntry. The generic update and
delete operations are refused.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, NoReturn

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.enums import LedgerEntryType
from vipledger.models.wallet_ledger import WalletLedgerEntry
from vipledger.repositories.base import BaseRepository, as_decimal
from vipledger.utils.datetime_utils import ensure_utc, utc_now


class LedgerRepository(BaseRepository[WalletLedgerEntry]):
    """Wallet ledger repository with aggregate queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger repository."""
        super().__init__(WalletLedgerEntry, session)

    async def update(self, id: int, for_update: bool = False, **data: Any) -> NoReturn:
        """Ledger entries are immutable."""
        raise TypeError("wallet_ledger is append-only: post an ADJUSTMENT instead")

    async def delete(self, id: int) -> NoReturn:
        """Ledger entries are immutable."""
        raise TypeError("wallet_ledger is append-only: post an ADJUSTMENT instead")

    async def append(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        amount: Decimal,
        description: str | None = None,
        created_at: datetime | None = None,
    ) -> WalletLedgerEntry:
        """
        Append a new entry within the current transaction.

        Args:
            user_id: Owner of the entry
            entry_type: Cause of the entry
            amount: Signed amount
            description: Human readable description
            created_at: Entry timestamp (defaults to now)

        Returns:
            Created entry (flushed, id assigned)
        """
        entry = WalletLedgerEntry(
            user_id=user_id,
            type=entry_type.value,
            amount=amount,
            description=description,
            created_at=ensure_utc(created_at) if created_at else utc_now(),
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def balance(self, user_id: int) -> Decimal:
        """Sum of every entry of the user."""
        stmt = select(
            func.coalesce(func.sum(WalletLedgerEntry.amount), 0)
        ).where(WalletLedgerEntry.user_id == user_id)
        result = await self.session.execute(stmt)
        return as_decimal(result.scalar_one())

    async def sum_by_type(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        since: datetime | None = None,
    ) -> Decimal:
        """
        Sum of the user's entries of one type.

        Args:
            user_id: User ID
            entry_type: Entry type
            since: Only entries created at or after this instant

        Returns:
            Sum of amounts (0 when there are none)
        """
        stmt = select(
            func.coalesce(func.sum(WalletLedgerEntry.amount), 0)
        ).where(
            WalletLedgerEntry.user_id == user_id,
            WalletLedgerEntry.type == entry_type.value,
        )
        if since is not None:
            stmt = stmt.where(WalletLedgerEntry.created_at >= ensure_utc(since))
        result = await self.session.execute(stmt)
        return as_decimal(result.scalar_one())

    async def sums_grouped_by_type(self, user_id: int) -> dict[str, Decimal]:
        """Per-type sums for one user in a single query."""
        stmt = (
            select(WalletLedgerEntry.type, func.sum(WalletLedgerEntry.amount))
            .where(WalletLedgerEntry.user_id == user_id)
            .group_by(WalletLedgerEntry.type)
        )
        result = await self.session.execute(stmt)
        return {row[0]: as_decimal(row[1]) for row in result.all()}

    async def latest_entry(
        self, user_id: int, entry_type: LedgerEntryType
    ) -> WalletLedgerEntry | None:
        """Most recent entry of a type for the user."""
        stmt = (
            select(WalletLedgerEntry)
            .where(
                WalletLedgerEntry.user_id == user_id,
                WalletLedgerEntry.type == entry_type.value,
            )
            .order_by(WalletLedgerEntry.created_at.desc(), WalletLedgerEntry.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def entries_since(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        since: datetime,
    ) -> list[WalletLedgerEntry]:
        """Entries of a type created at or after since, oldest first."""
        stmt = (
            select(WalletLedgerEntry)
            .where(
                WalletLedgerEntry.user_id == user_id,
                WalletLedgerEntry.type == entry_type.value,
                WalletLedgerEntry.created_at >= ensure_utc(since),
            )
            .order_by(WalletLedgerEntry.created_at.asc(), WalletLedgerEntry.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def history(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
        entry_type: LedgerEntryType | None = None,
    ) -> list[WalletLedgerEntry]:
        """User entries, newest first."""
        stmt = select(WalletLedgerEntry).where(WalletLedgerEntry.user_id == user_id)
        if entry_type is not None:
            stmt = stmt.where(WalletLedgerEntry.type == entry_type.value)
        stmt = (
            stmt.order_by(WalletLedgerEntry.created_at.desc(), WalletLedgerEntry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
