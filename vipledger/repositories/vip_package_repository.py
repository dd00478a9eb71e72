"""
VIP package repository.

Read access to the package catalog.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.vip_package import VipPackage
from vipledger.repositories.base import BaseRepository


class VipPackageRepository(BaseRepository[VipPackage]):
    """VIP package repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize package repository."""
        super().__init__(VipPackage, session)

    async def get_enabled(self) -> list[VipPackage]:
        """Enabled packages ordered by level."""
        stmt = (
            select(VipPackage)
            .where(VipPackage.enabled.is_(True))
            .order_by(VipPackage.level, VipPackage.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
