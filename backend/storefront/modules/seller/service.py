"""
Seller Service - Store and product management for sellers.
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from slugify import slugify
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from storefront.models import (
    Brand,
    Cart,
    CartItem,
    Category,
    Color,
    Material,
    OrderItem,
    Product,
    Review,
    SellerStatus,
    Size,
    Store,
    Tag,
    User,
    WishlistItem,
    product_tags,
)
from storefront.modules.shop.cart import CartService
from storefront.modules.shop.service import PRODUCT_DETAIL_OPTIONS

# Attribute references on a product: (payload key, model, required)
PRODUCT_REFERENCES = (
    ("category_id", Category, True),
    ("brand_id", Brand, True),
    ("size_id", Size, False),
    ("color_id", Color, False),
    ("material_id", Material, False),
)


class SellerService:
    """
    Service for a seller's own store and products.

    Every method is scoped to the seller passed in; other sellers'
    stores and products are reported as not found.

    Usage:
        seller = SellerService(db_session, current_user)
        store = await seller.create_store("Acme Outfitters")
    """

    def __init__(self, db: AsyncSession, seller: User) -> None:
        """Initialize seller service with database session and acting seller."""
        self.db = db
        self.seller = seller

    def _require_approval(self) -> None:
        if (
            settings.require_seller_approval
            and self.seller.seller_status != SellerStatus.APPROVED
        ):
            raise ForbiddenError("Seller account is not approved yet")

    # ==================== Store ====================

    async def find_store(self) -> Store | None:
        result = await self.db.execute(
            select(Store).where(Store.user_id == self.seller.id)
        )
        return result.scalar_one_or_none()

    async def get_store(self) -> Store:
        store = await self.find_store()
        if not store:
            raise NotFoundError("Store not found. Please create a store first")
        return store

    async def _get_owned_store(self, store_id: int) -> Store:
        store = await self.db.get(Store, store_id)
        if not store or store.user_id != self.seller.id:
            raise NotFoundError("Store not found")
        return store

    async def _unique_store_slug(self, name: str, exclude_id: int | None = None) -> str:
        base = slugify(name) or "store"
        slug, suffix = base, 1
        while True:
            query = select(Store.id).where(Store.slug == slug)
            if exclude_id is not None:
                query = query.where(Store.id != exclude_id)
            if not (await self.db.execute(query)).first():
                return slug
            suffix += 1
            slug = f"{base}-{suffix}"

    async def _ensure_store_name_free(self, name: str, exclude_id: int | None = None) -> None:
        query = select(Store.id).where(Store.store_name == name)
        if exclude_id is not None:
            query = query.where(Store.id != exclude_id)
        if (await self.db.execute(query)).first():
            raise ConflictError("Store name is already taken")

    async def create_store(
        self,
        store_name: str | None,
        store_description: str | None = None,
        store_image: str | None = None,
    ) -> Store:
        """
        Open the seller's store.

        Raises:
            BadRequestError: Name missing or seller already has a store
            ConflictError: Name used by another store
        """
        self._require_approval()
        name = (store_name or "").strip()
        if not name:
            raise BadRequestError("Store name is required")
        if await self.find_store():
            raise BadRequestError("Store already exists")
        await self._ensure_store_name_free(name)

        store = Store(
            user_id=self.seller.id,
            store_name=name,
            slug=await self._unique_store_slug(name),
            store_description=store_description,
            store_image=store_image,
            is_active=True,
        )
        self.db.add(store)
        await self.db.flush()
        logger.info(f"Seller {self.seller.id} opened store {store.id}: {name}")
        return store

    async def update_store(self, store_id: int, fields: dict[str, Any]) -> Store:
        store = await self._get_owned_store(store_id)

        if fields.get("store_name") is not None:
            name = fields["store_name"].strip()
            if not name:
                raise BadRequestError("Store name cannot be empty")
            if name != store.store_name:
                await self._ensure_store_name_free(name, exclude_id=store.id)
                store.store_name = name
                store.slug = await self._unique_store_slug(name, exclude_id=store.id)

        for key in ("store_description", "store_image", "is_active"):
            if fields.get(key) is not None:
                setattr(store, key, fields[key])

        await self.db.flush()
        return store

    async def delete_store(self, store_id: int) -> None:
        """Close the store and remove its products."""
        store = await self._get_owned_store(store_id)
        result = await self.db.execute(
            select(Product.id).where(Product.store_id == store.id)
        )
        for product_id in result.scalars().all():
            await self._purge_product(product_id)

        await self.db.execute(
            update(OrderItem)
            .where(OrderItem.store_id == store.id)
            .values(store_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(delete(Store).where(Store.id == store.id))
        logger.info(f"Seller {self.seller.id} closed store {store_id}")

    async def get_status(self) -> dict[str, Any]:
        store = await self.find_store()
        return {
            "sellerStatus": self.seller.seller_status.value if self.seller.seller_status else None,
            "approvedAt": self.seller.approved_at,
            "hasStore": store is not None,
            "storeId": store.id if store else None,
            "approvalRequired": settings.require_seller_approval,
        }

    # ==================== Products ====================

    async def _load_product(self, product_id: int) -> Product:
        query = (
            select(Product)
            .options(*PRODUCT_DETAIL_OPTIONS)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(query)).scalar_one()

    async def _get_owned_product(self, product_id: int) -> Product:
        store = await self.get_store()
        product = await self.db.get(Product, product_id)
        if not product or product.store_id != store.id:
            raise NotFoundError("Product not found")
        return product

    async def _validate_references(self, fields: dict[str, Any]) -> None:
        for key, model, required in PRODUCT_REFERENCES:
            value = fields.get(key)
            if value is None:
                if required:
                    raise BadRequestError(f"{key.removesuffix('_id').capitalize()} is required")
                continue
            if not await self.db.get(model, value):
                raise BadRequestError(f"Invalid {key.removesuffix('_id')}")

    async def _resolve_tags(self, tag_ids: list[int]) -> list[Tag]:
        if not tag_ids:
            return []
        result = await self.db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
        tags = list(result.scalars().all())
        if len(tags) != len(set(tag_ids)):
            raise BadRequestError("Invalid tags")
        return tags

    @staticmethod
    def _validate_numbers(price: Decimal | None, stock: int | None) -> None:
        if price is not None and price <= 0:
            raise BadRequestError("Price must be greater than 0")
        if stock is not None and stock < 0:
            raise BadRequestError("Stock cannot be negative")

    async def create_product(self, fields: dict[str, Any]) -> Product:
        """
        List a new product in the seller's store.

        Raises:
            NotFoundError: Seller has no store
            BadRequestError: Missing fields or unknown attribute references
        """
        self._require_approval()
        store = await self.get_store()

        name = (fields.get("name") or "").strip()
        if not name:
            raise BadRequestError("Product name is required")
        if fields.get("price") is None or fields.get("stock") is None:
            raise BadRequestError("Price and stock are required")
        self._validate_numbers(fields["price"], fields["stock"])
        await self._validate_references(fields)

        product = Product(
            store_id=store.id,
            name=name,
            slug=slugify(name),
            description=fields.get("description"),
            price=fields["price"],
            stock=fields["stock"],
            category_id=fields["category_id"],
            brand_id=fields["brand_id"],
            size_id=fields.get("size_id"),
            color_id=fields.get("color_id"),
            material_id=fields.get("material_id"),
            images=list(fields.get("images") or []),
            purchases=0,
            popularity_score=0,
            average_rating=0.0,
            review_count=0,
            is_active=True,
        )
        product.tags = await self._resolve_tags(fields.get("tags") or [])
        self.db.add(product)
        await self.db.flush()

        logger.info(f"Store {store.id} listed product {product.id}: {name}")
        return await self._load_product(product.id)

    async def get_products(self) -> list[Product]:
        store = await self.get_store()
        result = await self.db.execute(
            select(Product)
            .options(*PRODUCT_DETAIL_OPTIONS)
            .where(Product.store_id == store.id)
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(result.scalars().all())

    async def update_product(self, product_id: int, fields: dict[str, Any]) -> Product:
        """Partial update of one of the seller's products."""
        owned = await self._get_owned_product(product_id)
        product = await self._load_product(owned.id)

        if fields.get("name") is not None:
            name = fields["name"].strip()
            if not name:
                raise BadRequestError("Product name cannot be empty")
            product.name = name
            product.slug = slugify(name)

        self._validate_numbers(fields.get("price"), fields.get("stock"))
        references = {
            key: fields[key] for key, _, _ in PRODUCT_REFERENCES if fields.get(key) is not None
        }
        for key, model, _ in PRODUCT_REFERENCES:
            if key in references and not await self.db.get(model, references[key]):
                raise BadRequestError(f"Invalid {key.removesuffix('_id')}")

        for key in ("description", "price", "stock", "is_active", *references):
            if fields.get(key) is not None:
                setattr(product, key, fields[key])
        if fields.get("images") is not None:
            product.images = list(fields["images"])

        if fields.get("tags") is not None:
            product.tags = await self._resolve_tags(fields["tags"])

        await self.db.flush()
        return await self._load_product(product.id)

    async def delete_product(self, product_id: int) -> None:
        product = await self._get_owned_product(product_id)
        await self._purge_product(product.id)
        logger.info(f"Seller {self.seller.id} deleted product {product_id}")

    async def _purge_product(self, product_id: int) -> None:
        """
        Remove a product and everything that points at it.

        Cart lines and wishlist entries are dropped (affected cart totals
        recomputed); order lines keep their snapshot without the reference.
        """
        affected = await self.db.execute(
            select(CartItem.cart_id).where(CartItem.product_id == product_id).distinct()
        )
        cart_ids = list(affected.scalars().all())

        await self.db.execute(delete(CartItem).where(CartItem.product_id == product_id))
        await self.db.execute(
            delete(WishlistItem).where(WishlistItem.product_id == product_id)
        )
        await self.db.execute(delete(Review).where(Review.product_id == product_id))
        await self.db.execute(
            update(OrderItem)
            .where(OrderItem.product_id == product_id)
            .values(product_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(product_tags).where(product_tags.c.product_id == product_id)
        )
        await self.db.execute(delete(Product).where(Product.id == product_id))

        carts = CartService(self.db)
        for cart_id in cart_ids:
            cart = await self.db.get(Cart, cart_id)
            if cart is not None:
                await carts.recalculate_totals(cart)
