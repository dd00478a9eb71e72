"""
Subscription service.

Purchase lifecycle: PENDING -> ACTIVE | REJECTED. Lifecycle transitions
never touch the ledger.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.enums import PurchaseStatus
from vipledger.models.purchase import Purchase
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.repositories.vip_package_repository import VipPackageRepository
from vipledger.services.base_service import BaseService, transaction
from vipledger.utils.datetime_utils import ensure_utc, utc_now
from vipledger.utils.exceptions import (
    ErrorCode,
    InvalidStateTransition,
    NotFound,
    ValidationError,
)


@dataclass
class PurchaseView:
    """Purchase as listed to its owner, with the live package rate."""

    id: int
    package_id: int | None
    package_name: str
    investment_amount: Decimal
    status: str
    daily_profit_amount: Decimal
    total_credited: Decimal
    roulette_spent: bool
    created_at: datetime
    activated_at: datetime | None


class SubscriptionService(BaseService):
    """Purchase lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize subscription service."""
        super().__init__(session)
        self.purchase_repo = PurchaseRepository(session)
        self.package_repo = VipPackageRepository(session)
        self.user_repo = UserRepository(session)

    @transaction
    async def request_purchase(self, user_id: int, package_id: int) -> Purchase:
        """
        Create a PENDING purchase of a package.

        Args:
            user_id: Buyer
            package_id: Package to buy

        Returns:
            Created purchase

        Raises:
            NotFound: Unknown user or package
            ValidationError: Package disabled, or a PENDING/ACTIVE purchase
                of the same package exists (DUPLICATE_PURCHASE)
        """
        if await self.user_repo.lock(user_id) is None:
            raise NotFound(f"User {user_id} not found")

        package = await self.package_repo.get_by_id(package_id)
        if package is None:
            raise NotFound(f"Package {package_id} not found")
        if not package.enabled:
            raise ValidationError(
                f"Package {package.name} is not available",
                ErrorCode.INVALID_INPUT,
            )

        blocking = await self.purchase_repo.find_blocking_purchase(
            user_id, package_id
        )
        if blocking is not None:
            raise ValidationError(
                f"Package {package.name} already requested "
                f"(purchase {blocking.id} is {blocking.status})",
                ErrorCode.DUPLICATE_PURCHASE,
            )

        purchase = await self.purchase_repo.create(
            user_id=user_id,
            package_id=package_id,
            investment_amount=package.investment_amount,
            status=PurchaseStatus.PENDING.value,
            daily_profit_amount=package.daily_profit_amount,
            total_credited=Decimal("0"),
            created_at=utc_now(),
        )

        self.logger.info(
            "Purchase requested",
            extra={
                "purchase_id": purchase.id,
                "user_id": user_id,
                "package_id": package_id,
            },
        )
        return purchase

    async def _get_pending(self, purchase_id: int, target: PurchaseStatus) -> Purchase:
        purchase = await self.purchase_repo.get_with_package(
            purchase_id, for_update=True
        )
        if purchase is None:
            raise NotFound(f"Purchase {purchase_id} not found")
        if purchase.status != PurchaseStatus.PENDING.value:
            raise InvalidStateTransition(
                f"Cannot move purchase {purchase_id} from "
                f"{purchase.status} to {target.value}"
            )
        return purchase

    @transaction
    async def approve(
        self, purchase_id: int, now: datetime | None = None
    ) -> Purchase:
        """
        Activate a PENDING purchase.

        Args:
            purchase_id: Purchase ID
            now: Activation instant (defaults to now)

        Returns:
            Activated purchase

        Raises:
            NotFound: Unknown purchase
            InvalidStateTransition: Purchase is not PENDING
        """
        purchase = await self._get_pending(purchase_id, PurchaseStatus.ACTIVE)
        now = ensure_utc(now) if now else utc_now()

        purchase.status = PurchaseStatus.ACTIVE.value
        purchase.activated_at = now
        purchase.reviewed_at = now
        if purchase.package is not None:
            purchase.daily_profit_amount = purchase.package.daily_profit_amount
        await self.session.flush()

        self.logger.info(
            "Purchase approved",
            extra={"purchase_id": purchase_id, "user_id": purchase.user_id},
        )
        return purchase

    @transaction
    async def reject(
        self, purchase_id: int, now: datetime | None = None
    ) -> Purchase:
        """
        Reject a PENDING purchase. No ledger effect.

        Raises:
            NotFound: Unknown purchase
            InvalidStateTransition: Purchase is not PENDING
        """
        purchase = await self._get_pending(purchase_id, PurchaseStatus.REJECTED)

        purchase.status = PurchaseStatus.REJECTED.value
        purchase.reviewed_at = ensure_utc(now) if now else utc_now()
        await self.session.flush()

        self.logger.info(
            "Purchase rejected",
            extra={"purchase_id": purchase_id, "user_id": purchase.user_id},
        )
        return purchase

    async def list_for_user(self, user_id: int) -> list[PurchaseView]:
        """All purchases of a user, newest first, with live package rates."""
        purchases = await self.purchase_repo.list_for_user(user_id)
        return [
            PurchaseView(
                id=purchase.id,
                package_id=purchase.package_id,
                package_name=purchase.package_name,
                investment_amount=purchase.investment_amount,
                status=purchase.status,
                daily_profit_amount=(
                    purchase.package.daily_profit_amount
                    if purchase.package is not None
                    else purchase.daily_profit_amount
                ),
                total_credited=purchase.total_credited,
                roulette_spent=purchase.roulette_spent,
                created_at=ensure_utc(purchase.created_at),
                activated_at=(
                    ensure_utc(purchase.activated_at) if purchase.activated_at else None
                ),
            )
            for purchase in purchases
        ]
