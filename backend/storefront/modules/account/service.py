"""
Account Service - Registration, login, profile and addresses.
"""

from typing import Any

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.security import create_access_token, hash_password, verify_password
from storefront.models import (
    Address,
    Cart,
    CartItem,
    Order,
    Review,
    SellerStatus,
    User,
    UserRole,
    Wishlist,
    WishlistItem,
)
from storefront.modules.shop.reviews import ReviewService

ADDRESS_FIELDS = ("name", "street", "city", "state", "zip_code", "phone")

SELF_SERVICE_ROLES = (UserRole.CUSTOMER, UserRole.SELLER)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    """
    Service for user accounts.

    Usage:
        accounts = AccountService(db_session)
        user = await accounts.register("Ada", "ada@example.com", "secret1")
        user, token = await accounts.authenticate("ada@example.com", "secret1")
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize account service with database session."""
        self.db = db

    # ==================== Authentication ====================

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == _normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _check_password_strength(self, password: str) -> None:
        if len(password) < settings.password_min_length:
            raise BadRequestError(
                f"Password must be at least {settings.password_min_length} characters long"
            )

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str = UserRole.CUSTOMER.value,
    ) -> User:
        """
        Create a customer or seller account.

        Sellers start in the pending approval state.

        Raises:
            BadRequestError: Invalid role, weak password or email taken
        """
        try:
            user_role = UserRole(role)
        except ValueError:
            raise BadRequestError("Role must be customer or seller") from None
        if user_role not in SELF_SERVICE_ROLES:
            raise BadRequestError("Role must be customer or seller")

        name = name.strip()
        if not name:
            raise BadRequestError("Name is required")
        self._check_password_strength(password)

        if await self.get_user_by_email(email):
            raise BadRequestError("User already exists")

        user = User(
            name=name,
            email=_normalize_email(email),
            hashed_password=hash_password(password),
            role=user_role,
            seller_status=SellerStatus.PENDING if user_role == UserRole.SELLER else None,
        )
        self.db.add(user)
        await self.db.flush()

        logger.info(f"Registered {user_role.value} account {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> tuple[User, str]:
        """
        Verify credentials and issue an access token.

        Raises:
            BadRequestError: Unknown email or wrong password
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for {_normalize_email(email)}")
            raise BadRequestError("Invalid credentials")

        token = create_access_token(user.id, user.role.value)
        return user, token

    # ==================== Profile ====================

    async def update_profile(
        self,
        user: User,
        name: str | None = None,
        email: str | None = None,
    ) -> User:
        """Change name and/or email; emails stay unique."""
        if name is not None:
            name = name.strip()
            if not name:
                raise BadRequestError("Name cannot be empty")
            user.name = name

        if email is not None and _normalize_email(email) != user.email:
            if await self.get_user_by_email(email):
                raise BadRequestError("Email is already in use")
            user.email = _normalize_email(email)

        await self.db.flush()
        return user

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        if not current_password or not new_password:
            raise BadRequestError("Current password and new password are required")
        self._check_password_strength(new_password)
        if not verify_password(current_password, user.hashed_password):
            raise BadRequestError("Current password is incorrect")

        user.hashed_password = hash_password(new_password)
        await self.db.flush()
        logger.info(f"User {user.id} changed password")

    async def delete_account(self, user: User, password: str) -> None:
        """
        Permanently remove a customer account.

        The customer's cart, wishlists, addresses and reviews go with it.
        Orders are kept for bookkeeping with the customer reference cleared.
        """
        if not password:
            raise BadRequestError("Password is required to delete account")
        if not verify_password(password, user.hashed_password):
            raise BadRequestError("Incorrect password")

        user_id = user.id

        cart_ids = select(Cart.id).where(Cart.user_id == user_id)
        await self.db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
        await self.db.execute(delete(Cart).where(Cart.user_id == user_id))

        wishlist_ids = select(Wishlist.id).where(Wishlist.customer_id == user_id)
        await self.db.execute(
            delete(WishlistItem).where(WishlistItem.wishlist_id.in_(wishlist_ids))
        )
        await self.db.execute(delete(Wishlist).where(Wishlist.customer_id == user_id))

        reviewed = await self.db.execute(
            select(Review.product_id).where(Review.user_id == user_id)
        )
        product_ids = list(reviewed.scalars().all())
        await self.db.execute(delete(Review).where(Review.user_id == user_id))
        reviews = ReviewService(self.db)
        for product_id in product_ids:
            await reviews.recalculate_product_rating(product_id)

        await self.db.execute(delete(Address).where(Address.user_id == user_id))
        await self.db.execute(
            update(Order)
            .where(Order.customer_id == user_id)
            .values(customer_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(delete(User).where(User.id == user_id))

        logger.info(f"Deleted account {user_id}")

    # ==================== Addresses ====================

    async def get_addresses(self, user_id: int) -> list[Address]:
        """Addresses with the default first, then newest."""
        result = await self.db.execute(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        )
        return list(result.scalars().all())

    async def get_address(self, user_id: int, address_id: int) -> Address:
        address = await self.db.get(Address, address_id)
        if not address or address.user_id != user_id:
            raise NotFoundError("Address not found")
        return address

    def _clean_address(self, fields: dict[str, Any]) -> dict[str, Any]:
        missing = [f for f in ADDRESS_FIELDS if not str(fields.get(f) or "").strip()]
        if missing:
            raise BadRequestError(f"Missing required address fields: {', '.join(missing)}")

        cleaned = {f: str(fields[f]).strip() for f in ADDRESS_FIELDS}
        cleaned["country"] = str(fields.get("country") or "").strip() or settings.default_country
        return cleaned

    async def _clear_default(self, user_id: int, keep_id: int | None = None) -> None:
        query = update(Address).where(
            Address.user_id == user_id, Address.is_default == True
        )
        if keep_id is not None:
            query = query.where(Address.id != keep_id)
        await self.db.execute(
            query.values(is_default=False).execution_options(synchronize_session="fetch")
        )

    async def create_address(
        self, user_id: int, fields: dict[str, Any], is_default: bool = False
    ) -> Address:
        """Save an address; a new default replaces the previous one."""
        cleaned = self._clean_address(fields)
        if is_default:
            await self._clear_default(user_id)

        address = Address(user_id=user_id, is_default=is_default, **cleaned)
        self.db.add(address)
        await self.db.flush()
        return address

    async def update_address(
        self,
        user_id: int,
        address_id: int,
        fields: dict[str, Any],
        is_default: bool = False,
    ) -> Address:
        address = await self.get_address(user_id, address_id)
        cleaned = self._clean_address(fields)
        if is_default:
            await self._clear_default(user_id, keep_id=address.id)

        for key, value in cleaned.items():
            setattr(address, key, value)
        address.is_default = is_default
        await self.db.flush()
        return address

    async def delete_address(self, user_id: int, address_id: int) -> None:
        """Delete an address, promoting the newest remaining one if it was the default."""
        address = await self.get_address(user_id, address_id)
        was_default = address.is_default
        await self.db.delete(address)
        await self.db.flush()

        if was_default:
            remaining = await self.get_addresses(user_id)
            if remaining:
                remaining[0].is_default = True
                await self.db.flush()
