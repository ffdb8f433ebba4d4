"""
Wishlist Service - Named product lists per customer.
"""

from loguru import logger
from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from storefront.core.pagination import paginate
from storefront.models import (
    Color,
    Product,
    Size,
    Wishlist,
    WishlistItem,
    WishlistPriority,
)
from storefront.models.wishlist import (
    DEFAULT_WISHLIST_DESCRIPTION,
    DEFAULT_WISHLIST_NAME,
)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 500

PRIORITY_ORDER = case(
    (WishlistItem.priority == WishlistPriority.HIGH, 0),
    (WishlistItem.priority == WishlistPriority.MEDIUM, 1),
    else_=2,
)

ITEM_LOAD_OPTIONS = (
    selectinload(WishlistItem.product).selectinload(Product.category),
    selectinload(WishlistItem.product).selectinload(Product.brand),
    selectinload(WishlistItem.size),
    selectinload(WishlistItem.color),
)


def parse_priority(value: str | None) -> WishlistPriority:
    if value is None:
        return WishlistPriority.MEDIUM
    try:
        return WishlistPriority(value)
    except ValueError:
        raise BadRequestError("Priority must be low, medium or high") from None


def _check_length(value: str | None, limit: int, label: str) -> None:
    if value is not None and len(value) > limit:
        raise BadRequestError(f"{label} cannot exceed {limit} characters")


class WishlistService:
    """
    Service for customer wishlists.

    Each customer has exactly one default wishlist, created on demand.
    It cannot be renamed or deleted.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize wishlist service with database session."""
        self.db = db

    # ==================== Wishlists ====================

    async def find_default(self, customer_id: int) -> Wishlist | None:
        result = await self.db.execute(
            select(Wishlist).where(
                Wishlist.customer_id == customer_id, Wishlist.is_default == True
            )
        )
        return result.scalar_one_or_none()

    async def create_default(self, customer_id: int) -> Wishlist:
        """
        Create the default wishlist.

        Raises:
            ConflictError: Customer already has one
        """
        if await self.find_default(customer_id):
            raise ConflictError("Default wishlist already exists")

        wishlist = Wishlist(
            customer_id=customer_id,
            name=DEFAULT_WISHLIST_NAME,
            description=DEFAULT_WISHLIST_DESCRIPTION,
            is_default=True,
            is_public=False,
        )
        self.db.add(wishlist)
        await self.db.flush()
        logger.debug(f"Created default wishlist for customer {customer_id}")
        return wishlist

    async def get_or_create_default(self, customer_id: int) -> Wishlist:
        return await self.find_default(customer_id) or await self.create_default(customer_id)

    async def get_wishlists(
        self, customer_id: int, page: int = 1, limit: int = 10
    ) -> tuple[list[tuple[Wishlist, int]], int]:
        """Customer's wishlists with item counts, default first then newest."""
        await self.get_or_create_default(customer_id)

        query = (
            select(Wishlist)
            .where(Wishlist.customer_id == customer_id)
            .order_by(
                Wishlist.is_default.desc(), Wishlist.created_at.desc(), Wishlist.id.desc()
            )
        )
        wishlists, total = await paginate(self.db, query, page, limit)

        counts: dict[int, int] = {}
        if wishlists:
            count_query = (
                select(WishlistItem.wishlist_id, func.count(WishlistItem.id))
                .where(WishlistItem.wishlist_id.in_([w.id for w in wishlists]))
                .group_by(WishlistItem.wishlist_id)
            )
            counts = {wid: count for wid, count in await self.db.execute(count_query)}
        return [(w, counts.get(w.id, 0)) for w in wishlists], total

    async def get_wishlist(self, customer_id: int, wishlist_id: int) -> Wishlist:
        wishlist = await self.db.get(Wishlist, wishlist_id)
        if not wishlist or wishlist.customer_id != customer_id:
            raise NotFoundError("Wishlist not found")
        return wishlist

    async def _ensure_unique_name(
        self, customer_id: int, name: str, exclude_id: int | None = None
    ) -> None:
        query = select(Wishlist.id).where(
            Wishlist.customer_id == customer_id, Wishlist.name == name
        )
        if exclude_id is not None:
            query = query.where(Wishlist.id != exclude_id)
        if (await self.db.execute(query)).first():
            raise ConflictError("A wishlist with this name already exists")

    async def create_wishlist(
        self,
        customer_id: int,
        name: str | None,
        description: str | None = None,
        is_public: bool = False,
    ) -> Wishlist:
        """
        Create a named wishlist.

        Raises:
            BadRequestError: Name missing or too long
            ConflictError: Name already used by this customer
        """
        name = (name or "").strip()
        if not name:
            raise BadRequestError("Wishlist name is required")
        _check_length(name, NAME_MAX_LENGTH, "Wishlist name")
        _check_length(description, DESCRIPTION_MAX_LENGTH, "Description")
        await self._ensure_unique_name(customer_id, name)

        wishlist = Wishlist(
            customer_id=customer_id,
            name=name,
            description=description.strip() if description else None,
            is_default=False,
            is_public=is_public,
        )
        self.db.add(wishlist)
        await self.db.flush()
        return wishlist

    async def update_wishlist(
        self,
        customer_id: int,
        wishlist_id: int,
        name: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> Wishlist:
        """Partial update; the default wishlist keeps its name."""
        wishlist = await self.get_wishlist(customer_id, wishlist_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise BadRequestError("Wishlist name cannot be empty")
            if name != wishlist.name:
                if wishlist.is_default:
                    raise ForbiddenError("Cannot rename the default wishlist")
                _check_length(name, NAME_MAX_LENGTH, "Wishlist name")
                await self._ensure_unique_name(customer_id, name, exclude_id=wishlist.id)
                wishlist.name = name

        if description is not None:
            _check_length(description, DESCRIPTION_MAX_LENGTH, "Description")
            wishlist.description = description.strip() or None
        if is_public is not None:
            wishlist.is_public = is_public

        await self.db.flush()
        return wishlist

    async def delete_wishlist(self, customer_id: int, wishlist_id: int) -> None:
        """Delete a wishlist and its items; the default one is protected."""
        wishlist = await self.get_wishlist(customer_id, wishlist_id)
        if wishlist.is_default:
            raise ForbiddenError("Cannot delete the default wishlist")

        await self.db.execute(
            delete(WishlistItem).where(WishlistItem.wishlist_id == wishlist.id)
        )
        await self.db.execute(delete(Wishlist).where(Wishlist.id == wishlist.id))
        logger.info(f"Customer {customer_id} deleted wishlist {wishlist_id}")

    # ==================== Items ====================

    async def get_items(
        self,
        customer_id: int,
        wishlist_id: int | None = None,
        product_id: int | None = None,
        priority: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[WishlistItem], int]:
        """Items across the customer's wishlists, highest priority first."""
        query = (
            select(WishlistItem)
            .options(*ITEM_LOAD_OPTIONS)
            .join(Wishlist, Wishlist.id == WishlistItem.wishlist_id)
            .where(Wishlist.customer_id == customer_id)
        )
        if wishlist_id is not None:
            await self.get_wishlist(customer_id, wishlist_id)
            query = query.where(WishlistItem.wishlist_id == wishlist_id)
        if product_id is not None:
            query = query.where(WishlistItem.product_id == product_id)
        if priority is not None:
            query = query.where(WishlistItem.priority == parse_priority(priority))

        query = query.order_by(
            PRIORITY_ORDER, WishlistItem.created_at.desc(), WishlistItem.id.desc()
        )
        return await paginate(self.db, query, page, limit)

    async def get_wishlist_items(self, wishlist_id: int) -> list[WishlistItem]:
        query = (
            select(WishlistItem)
            .options(*ITEM_LOAD_OPTIONS)
            .where(WishlistItem.wishlist_id == wishlist_id)
            .order_by(PRIORITY_ORDER, WishlistItem.created_at.desc(), WishlistItem.id.desc())
            .execution_options(populate_existing=True)
        )
        return list((await self.db.execute(query)).scalars().all())

    async def _get_item(self, customer_id: int, wishlist_id: int, item_id: int) -> WishlistItem:
        await self.get_wishlist(customer_id, wishlist_id)
        query = (
            select(WishlistItem)
            .options(*ITEM_LOAD_OPTIONS)
            .where(WishlistItem.id == item_id, WishlistItem.wishlist_id == wishlist_id)
            .execution_options(populate_existing=True)
        )
        item = (await self.db.execute(query)).scalar_one_or_none()
        if not item:
            raise NotFoundError("Wishlist item not found")
        return item

    async def _validate_variant(self, size_id: int | None, color_id: int | None) -> None:
        if size_id is not None and not await self.db.get(Size, size_id):
            raise BadRequestError("Invalid size")
        if color_id is not None and not await self.db.get(Color, color_id):
            raise BadRequestError("Invalid color")

    async def add_item(
        self,
        customer_id: int,
        wishlist_id: int,
        product_id: int | None,
        size_id: int | None = None,
        color_id: int | None = None,
        notes: str | None = None,
        priority: str | None = None,
    ) -> WishlistItem:
        """
        Save a product to a wishlist.

        Raises:
            NotFoundError: Wishlist not owned, or product missing or inactive
            ConflictError: Product already in this wishlist
        """
        await self.get_wishlist(customer_id, wishlist_id)
        if product_id is None:
            raise BadRequestError("Product ID is required")

        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found or inactive")

        existing = await self.db.execute(
            select(WishlistItem.id).where(
                WishlistItem.wishlist_id == wishlist_id,
                WishlistItem.product_id == product_id,
            )
        )
        if existing.first():
            raise ConflictError("Product already in wishlist")

        _check_length(notes, NOTES_MAX_LENGTH, "Notes")
        await self._validate_variant(size_id, color_id)

        item = WishlistItem(
            wishlist_id=wishlist_id,
            product_id=product_id,
            size_id=size_id,
            color_id=color_id,
            notes=notes.strip() if notes else None,
            priority=parse_priority(priority),
        )
        self.db.add(item)
        await self.db.flush()
        return await self._get_item(customer_id, wishlist_id, item.id)

    async def update_item(
        self,
        customer_id: int,
        wishlist_id: int,
        item_id: int,
        fields: dict,
    ) -> WishlistItem:
        """Update size, color, notes or priority of a saved item."""
        item = await self._get_item(customer_id, wishlist_id, item_id)

        if "size_id" in fields or "color_id" in fields:
            await self._validate_variant(fields.get("size_id"), fields.get("color_id"))
        if "size_id" in fields:
            item.size_id = fields["size_id"]
        if "color_id" in fields:
            item.color_id = fields["color_id"]
        if "notes" in fields:
            notes = fields["notes"]
            _check_length(notes, NOTES_MAX_LENGTH, "Notes")
            item.notes = notes.strip() if notes else None
        if fields.get("priority") is not None:
            item.priority = parse_priority(fields["priority"])

        await self.db.flush()
        return await self._get_item(customer_id, wishlist_id, item_id)

    async def remove_item(self, customer_id: int, wishlist_id: int, item_id: int) -> None:
        item = await self._get_item(customer_id, wishlist_id, item_id)
        await self.db.delete(item)
        await self.db.flush()
