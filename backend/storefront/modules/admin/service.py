"""
Admin Service - Marketplace oversight.
"""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.database import utcnow
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models import Product, SellerStatus, User, UserRole
from storefront.modules.shop.service import PRODUCT_DETAIL_OPTIONS


def parse_seller_status(value: str) -> SellerStatus:
    try:
        return SellerStatus(value)
    except ValueError:
        raise BadRequestError(
            f"Invalid seller status. Use one of: {', '.join(s.value for s in SellerStatus)}"
        ) from None


class AdminService:
    """Service for admin views over sellers, customers and products."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize admin service with database session."""
        self.db = db

    # ==================== Sellers ====================

    async def get_sellers(self, status: str | None = None) -> list[User]:
        query = (
            select(User)
            .options(selectinload(User.store))
            .where(User.role == UserRole.SELLER)
            .order_by(User.created_at.desc(), User.id.desc())
        )
        if status:
            query = query.where(User.seller_status == parse_seller_status(status))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_seller_approval(self, seller_id: int, status: str | None) -> User:
        """
        Approve or reject a seller.

        Raises:
            BadRequestError: Status is not approved or rejected
            NotFoundError: No seller with this ID
        """
        if status not in (SellerStatus.APPROVED.value, SellerStatus.REJECTED.value):
            raise BadRequestError("Status must be approved or rejected")

        result = await self.db.execute(
            select(User).options(selectinload(User.store)).where(User.id == seller_id)
        )
        seller = result.scalar_one_or_none()
        if not seller or seller.role != UserRole.SELLER:
            raise NotFoundError("Seller not found")

        seller.seller_status = SellerStatus(status)
        seller.approved_at = utcnow() if seller.seller_status == SellerStatus.APPROVED else None
        await self.db.flush()

        logger.info(f"Seller {seller_id} marked {status}")
        return seller

    # ==================== Customers & Products ====================

    async def get_customers(self) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.CUSTOMER)
            .order_by(User.created_at.desc(), User.id.desc())
        )
        return list(result.scalars().all())

    async def get_products(self) -> list[Product]:
        """Every product, active or not, newest first."""
        result = await self.db.execute(
            select(Product)
            .options(*PRODUCT_DETAIL_OPTIONS)
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(result.scalars().all())
