"""
Cart Service - Shopping carts for customers and guest sessions.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from storefront.models import Cart, CartItem, Color, Product, Size


class CartService:
    """
    Shopping cart service backed by the database.

    A cart belongs to exactly one owner: a customer (user_id) or a guest
    browser session (session_id). When both are known the customer wins.
    Totals are stored on the cart and recomputed after every change.

    Usage:
        carts = CartService(db_session)
        cart = await carts.add_item(product_id=5, quantity=2, session_id="abc")
        cart = await carts.merge_guest_cart(user_id=1, guest_session_id="abc")
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize cart service with database session."""
        self.db = db

    # ==================== Lookup ====================

    @staticmethod
    def _owner_clause(user_id: int | None, session_id: str | None):
        if user_id is not None:
            return Cart.user_id == user_id
        if session_id:
            return Cart.session_id == session_id
        raise BadRequestError("Either user ID or session ID is required")

    async def find_cart(
        self,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart | None:
        """Find the owner's cart with its lines loaded."""
        query = (
            select(Cart)
            .options(
                selectinload(Cart.items).selectinload(CartItem.product).selectinload(Product.store),
                selectinload(Cart.items).selectinload(CartItem.size),
                selectinload(Cart.items).selectinload(CartItem.color),
            )
            .where(self._owner_clause(user_id, session_id))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_cart(
        self,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart:
        """
        Get the owner's cart, creating an empty one if needed.

        Raises:
            BadRequestError: Neither user_id nor session_id given
        """
        cart = await self.find_cart(user_id, session_id)
        if cart:
            return cart

        if user_id is not None:
            cart = Cart(user_id=user_id)
        else:
            cart = Cart(session_id=session_id)
        cart.total_items = 0
        cart.total_price = Decimal("0")
        self.db.add(cart)
        await self.db.flush()
        logger.debug(f"Created cart {cart.id} for {'user ' + str(user_id) if user_id else 'guest session'}")
        return await self.reload(cart)

    async def reload(self, cart: Cart) -> Cart:
        """Re-read a cart with fresh lines and totals."""
        reloaded = await self.find_cart(cart.user_id, cart.session_id)
        if reloaded is None:
            raise NotFoundError("Cart not found")
        return reloaded

    async def _get_owned_item(
        self,
        item_id: int,
        user_id: int | None,
        session_id: str | None,
    ) -> CartItem:
        item = await self.db.get(CartItem, item_id)
        if not item:
            raise NotFoundError("Cart item not found")

        cart = await self.find_cart(user_id, session_id)
        if not cart:
            raise NotFoundError("Cart not found")
        if item.cart_id != cart.id:
            raise ForbiddenError("Cart item does not belong to this cart")
        return item

    # ==================== Totals ====================

    async def recalculate_totals(self, cart: Cart) -> Cart:
        """Recompute stored totals from the cart lines."""
        await self.db.flush()
        result = await self.db.execute(
            select(CartItem).where(CartItem.cart_id == cart.id)
        )
        items = list(result.scalars().all())

        cart.total_items = sum(item.quantity for item in items)
        cart.total_price = sum(
            (item.price * item.quantity for item in items), Decimal("0")
        )
        await self.db.flush()
        return await self.reload(cart)

    # ==================== Mutations ====================

    async def _validate_variant(self, size_id: int | None, color_id: int | None) -> None:
        if size_id is not None and not await self.db.get(Size, size_id):
            raise BadRequestError("Invalid size")
        if color_id is not None and not await self.db.get(Color, color_id):
            raise BadRequestError("Invalid color")

    async def add_item(
        self,
        product_id: int,
        quantity: int = 1,
        size_id: int | None = None,
        color_id: int | None = None,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart:
        """
        Add a product to the owner's cart.

        A line with the same product, size and color is incremented
        instead of duplicated. New lines capture the current price.

        Raises:
            NotFoundError: Product missing or inactive
            InsufficientStockError: Resulting quantity exceeds stock
        """
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")
        if product.stock < quantity:
            raise InsufficientStockError("Insufficient stock available")

        await self._validate_variant(size_id, color_id)
        cart = await self.get_or_create_cart(user_id, session_id)

        result = await self.db.execute(
            select(CartItem).where(
                CartItem.cart_id == cart.id,
                CartItem.product_id == product_id,
                CartItem.size_id == size_id,
                CartItem.color_id == color_id,
            )
        )
        existing = result.scalar_one_or_none()

        if existing:
            new_quantity = existing.quantity + quantity
            if new_quantity > product.stock:
                raise InsufficientStockError(
                    f"Insufficient stock available. Available: {product.stock}, "
                    f"In cart: {existing.quantity}, Requested: {quantity}"
                )
            existing.quantity = new_quantity
        else:
            self.db.add(
                CartItem(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                    price=product.price,
                    size_id=size_id,
                    color_id=color_id,
                )
            )

        return await self.recalculate_totals(cart)

    async def update_item_quantity(
        self,
        item_id: int,
        quantity: int,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart:
        """
        Set the quantity of one cart line.

        Raises:
            BadRequestError: Quantity below 1
            NotFoundError: Item or cart missing
            ForbiddenError: Item belongs to another cart
            InsufficientStockError: Quantity exceeds stock
        """
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        item = await self._get_owned_item(item_id, user_id, session_id)
        product = await self.db.get(Product, item.product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")
        if quantity > product.stock:
            raise InsufficientStockError(
                f"Insufficient stock available. Available: {product.stock}, Requested: {quantity}"
            )

        item.quantity = quantity
        cart = await self.db.get(Cart, item.cart_id)
        return await self.recalculate_totals(cart)

    async def remove_item(
        self,
        item_id: int,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart:
        """Remove one line from the owner's cart."""
        item = await self._get_owned_item(item_id, user_id, session_id)
        cart = await self.db.get(Cart, item.cart_id)
        await self.db.delete(item)
        return await self.recalculate_totals(cart)

    async def clear(
        self,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> Cart:
        """Remove every line from the owner's cart."""
        cart = await self.get_or_create_cart(user_id, session_id)
        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        return await self.recalculate_totals(cart)

    # ==================== Merge ====================

    async def merge_guest_cart(self, user_id: int, guest_session_id: str) -> Cart:
        """
        Fold a guest session cart into the customer's cart.

        Matching lines (same product, size, color) have their quantities
        added; other lines are moved over. Quantities are clamped to the
        current stock and lines for unavailable products are dropped.
        The guest cart is deleted afterwards.

        Raises:
            NotFoundError: Neither cart exists
        """
        if not guest_session_id:
            raise BadRequestError("Guest session ID is required")

        guest_cart = await self.find_cart(session_id=guest_session_id)
        user_cart = await self.find_cart(user_id=user_id)

        if guest_cart is None:
            if user_cart is None:
                raise NotFoundError("No cart found to merge")
            return user_cart

        if user_cart is None:
            # Adopt the guest cart
            guest_cart.user_id = user_id
            guest_cart.session_id = None
            for item in guest_cart.items:
                available = item.product.stock if item.product.is_active else 0
                if available < 1:
                    await self.db.delete(item)
                elif item.quantity > available:
                    item.quantity = available
            logger.info(f"Guest cart {guest_cart.id} assigned to user {user_id}")
            await self.db.flush()
            return await self.recalculate_totals(guest_cart)

        user_lines = {
            (item.product_id, item.size_id, item.color_id): item
            for item in user_cart.items
        }

        for guest_item in guest_cart.items:
            product = guest_item.product
            available = product.stock if product.is_active else 0
            existing = user_lines.get(
                (guest_item.product_id, guest_item.size_id, guest_item.color_id)
            )

            if available < 1:
                await self.db.delete(guest_item)
            elif existing:
                existing.quantity = min(existing.quantity + guest_item.quantity, available)
                await self.db.delete(guest_item)
            else:
                guest_item.cart_id = user_cart.id
                guest_item.quantity = min(guest_item.quantity, available)

        await self.db.flush()
        await self.db.execute(delete(Cart).where(Cart.id == guest_cart.id))

        logger.info(
            f"Merged guest cart {guest_cart.id} into cart {user_cart.id} for user {user_id}"
        )
        return await self.recalculate_totals(user_cart)
