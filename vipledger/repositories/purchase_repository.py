"""
Purchase repository.

Data access layer for Purchase model (package subscriptions).
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vipledger.models.enums import PurchaseStatus
from vipledger.models.purchase import Purchase
from vipledger.repositories.base import BaseRepository, as_decimal


class PurchaseRepository(BaseRepository[Purchase]):
    """Purchase repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize purchase repository."""
        super().__init__(Purchase, session)

    async def get_with_package(
        self, purchase_id: int, for_update: bool = False
    ) -> Purchase | None:
        """
        Get purchase with its package loaded.

        Args:
            purchase_id: Purchase ID
            for_update: Lock the purchase row

        Returns:
            Purchase or None
        """
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(Purchase.id == purchase_id)
        )
        if for_update:
            await self.acquire_write_lock(purchase_id)
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: int) -> list[Purchase]:
        """
        Get ACTIVE purchases of a user, package loaded.

        Args:
            user_id: User ID

        Returns:
            Purchases ordered by activation time (newest first)
        """
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(
                Purchase.user_id == user_id,
                Purchase.status == PurchaseStatus.ACTIVE.value,
            )
            .order_by(Purchase.activated_at.desc(), Purchase.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_active(self) -> list[Purchase]:
        """Every ACTIVE purchase system-wide, package loaded."""
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(Purchase.status == PurchaseStatus.ACTIVE.value)
            .order_by(Purchase.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self, user_id: int | None = None) -> int:
        """Count ACTIVE purchases, optionally for one user."""
        stmt = (
            select(func.count())
            .select_from(Purchase)
            .where(Purchase.status == PurchaseStatus.ACTIVE.value)
        )
        if user_id is not None:
            stmt = stmt.where(Purchase.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def list_for_user(self, user_id: int) -> list[Purchase]:
        """All purchases of a user, newest first."""
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_blocking_purchase(
        self, user_id: int, package_id: int
    ) -> Purchase | None:
        """
        Find a PENDING or ACTIVE purchase of the same package.

        REJECTED purchases never block a new request.
        """
        stmt = (
            select(Purchase)
            .where(
                Purchase.user_id == user_id,
                Purchase.package_id == package_id,
                Purchase.status.in_(
                    [PurchaseStatus.PENDING.value, PurchaseStatus.ACTIVE.value]
                ),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def sum_active_investment(self, user_ids: Iterable[int]) -> Decimal:
        """
        Total investment of ACTIVE purchases owned by any of the users.

        Args:
            user_ids: Owner IDs

        Returns:
            Sum of investment_amount (0 for an empty set)
        """
        ids = list(user_ids)
        if not ids:
            return Decimal("0")
        stmt = select(
            func.coalesce(func.sum(Purchase.investment_amount), 0)
        ).where(
            Purchase.user_id.in_(ids),
            Purchase.status == PurchaseStatus.ACTIVE.value,
        )
        result = await self.session.execute(stmt)
        return as_decimal(result.scalar_one())

    async def get_roulette_eligible(
        self,
        user_id: int,
        min_investment: Decimal,
        purchase_id: int | None = None,
    ) -> list[Purchase]:
        """
        ACTIVE purchases with an unspent spin, highest investment first.

        Args:
            user_id: Owner ID
            min_investment: Minimum investment for a spin
            purchase_id: Restrict to one purchase

        Returns:
            Eligible purchases, package loaded
        """
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(
                Purchase.user_id == user_id,
                Purchase.status == PurchaseStatus.ACTIVE.value,
                Purchase.investment_amount >= min_investment,
                Purchase.roulette_spent.is_(False),
            )
            .order_by(Purchase.investment_amount.desc(), Purchase.id)
        )
        if purchase_id is not None:
            stmt = stmt.where(Purchase.id == purchase_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_roulette_history(self, user_id: int) -> list[Purchase]:
        """Purchases whose spin was consumed, most recent first."""
        stmt = (
            select(Purchase)
            .options(selectinload(Purchase.package))
            .where(
                Purchase.user_id == user_id,
                Purchase.roulette_spent.is_(True),
            )
            .order_by(Purchase.roulette_spent_at.desc(), Purchase.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def consume_roulette(
        self, purchase_id: int, prize: Decimal, spent_at: datetime
    ) -> bool:
        """
        Atomically consume the one-shot spin of a purchase.

        Conditional update: succeeds only while roulette_spent is false, so
        concurrent spins of the same purchase cannot both win.

        Returns:
            True if this call consumed the spin
        """
        stmt = (
            update(Purchase)
            .where(
                Purchase.id == purchase_id,
                Purchase.roulette_spent.is_(False),
            )
            .values(
                roulette_spent=True,
                roulette_prize=prize,
                roulette_spent_at=spent_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
