"""
User service.

Registration and lookup of platform users.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.user import User
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.base_service import BaseService, transaction
from vipledger.services.referral.chain_manager import ReferralChainManager
from vipledger.utils.datetime_utils import utc_now
from vipledger.utils.exceptions import ErrorCode, NotFound, ValidationError


class UserService(BaseService):
    """User registration."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.chain_manager = ReferralChainManager(session)

    @transaction
    async def register(
        self, username: str, sponsor_id: int | None = None
    ) -> User:
        """
        Register a new user, optionally under a sponsor.

        Args:
            username: Unique username
            sponsor_id: Sponsor user ID

        Returns:
            Created user

        Raises:
            ValidationError: Empty or taken username
            NotFound: Unknown sponsor
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("username is required", ErrorCode.INVALID_INPUT)
        if await self.user_repo.get_by_username(username) is not None:
            raise ValidationError(
                f"Username {username} is already taken", ErrorCode.INVALID_INPUT
            )
        if sponsor_id is not None:
            await self.chain_manager.validate_sponsor(None, sponsor_id)

        user = await self.user_repo.create(
            username=username, sponsor_id=sponsor_id, created_at=utc_now()
        )
        self.logger.info(
            "User registered",
            extra={"user_id": user.id, "sponsor_id": sponsor_id},
        )
        return user

    async def get_user(self, user_id: int) -> User:
        """
        Get user by ID.

        Raises:
            NotFound: Unknown user
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user
