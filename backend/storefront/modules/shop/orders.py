"""
Order Service - Checkout and order lifecycle.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy import Select, case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.config import settings
from storefront.core.database import utcnow
from storefront.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from storefront.core.pagination import paginate
from storefront.models import (
    Address,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
)
from storefront.modules.shop.cart import CartService

ORDER_LOAD_OPTIONS = (
    selectinload(Order.customer),
    selectinload(Order.items).selectinload(OrderItem.product),
    selectinload(Order.items).selectinload(OrderItem.size),
    selectinload(Order.items).selectinload(OrderItem.color),
)

# Fulfilment moves forward only; cancellation is possible until shipment.
STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

SHIPPING_FIELDS = ("name", "street", "city", "state", "zip_code", "phone")

CENT = Decimal("0.01")


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Check whether an order may move from one status to another."""
    if new == OrderStatus.CANCELLED:
        return current in CANCELLABLE
    if current == OrderStatus.CANCELLED:
        return False
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(current)


def parse_order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise BadRequestError(
            f"Invalid order status. Use one of: {', '.join(s.value for s in OrderStatus)}"
        ) from None


def parse_payment_status(value: str) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        raise BadRequestError(
            f"Invalid payment status. Use one of: {', '.join(s.value for s in PaymentStatus)}"
        ) from None


class OrderService:
    """
    Service for placing and managing orders.

    place_order() runs inside the request transaction: any error it
    raises rolls back the order, the stock decrements and the cart
    clearing together.

    Usage:
        orders = OrderService(db_session)
        order = await orders.place_order(customer_id=1, shipping=address)
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize order service with database session."""
        self.db = db

    # ==================== Checkout ====================

    async def resolve_shipping_address(
        self,
        customer_id: int,
        shipping: dict[str, Any] | None = None,
        address_id: int | None = None,
    ) -> dict[str, Any]:
        """
        Build the shipping snapshot from a saved address or explicit fields.

        Raises:
            NotFoundError: Saved address not found for this customer
            BadRequestError: Required fields missing
        """
        if address_id is not None:
            address = await self.db.get(Address, address_id)
            if not address or address.user_id != customer_id:
                raise NotFoundError("Address not found")
            return {
                "name": address.name,
                "street": address.street,
                "city": address.city,
                "state": address.state,
                "zip_code": address.zip_code,
                "country": address.country,
                "phone": address.phone,
            }

        if not shipping:
            raise BadRequestError("Shipping address is required")

        missing = [field for field in SHIPPING_FIELDS if not (shipping.get(field) or "").strip()]
        if missing:
            raise BadRequestError(f"Missing shipping address fields: {', '.join(missing)}")

        address = {field: shipping[field].strip() for field in SHIPPING_FIELDS}
        address["country"] = (shipping.get("country") or "").strip() or settings.default_country
        return address

    async def generate_order_number(self) -> str:
        """ORD-YYYYMMDD-NNNN, numbered from today's order count."""
        now = utcnow()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        count_query = select(func.count(Order.id)).where(
            Order.created_at >= day_start,
            Order.created_at < day_start + timedelta(days=1),
        )
        count = (await self.db.execute(count_query)).scalar_one()
        return f"ORD-{now:%Y%m%d}-{count + 1:04d}"

    async def place_order(
        self,
        customer_id: int,
        shipping: dict[str, Any],
        notes: str | None = None,
    ) -> Order:
        """
        Turn the customer's cart into an order.

        Steps:
            1. Validate every line against current stock
            2. Create the order with price snapshots
            3. Decrement stock (guarded against concurrent checkouts)
            4. Clear the cart

        Raises:
            NotFoundError: Cart missing or empty
            InsufficientStockError: A line exceeds available stock
        """
        carts = CartService(self.db)
        cart = await carts.find_cart(user_id=customer_id)
        if not cart or not cart.items:
            raise NotFoundError("Cart is empty")

        for item in cart.items:
            product = item.product
            if not product.is_active:
                raise BadRequestError(f"Product {product.name} is no longer available")
            if product.stock < item.quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.stock}, Requested: {item.quantity}"
                )

        subtotal = sum((item.price * item.quantity for item in cart.items), Decimal("0"))
        shipping_cost = settings.shipping_cost
        tax_amount = (subtotal * settings.tax_rate).quantize(CENT)

        order = Order(
            order_number=await self.generate_order_number(),
            customer_id=customer_id,
            shipping_name=shipping["name"],
            shipping_street=shipping["street"],
            shipping_city=shipping["city"],
            shipping_state=shipping["state"],
            shipping_zip_code=shipping["zip_code"],
            shipping_country=shipping["country"],
            shipping_phone=shipping["phone"],
            payment_method=settings.payment_method,
            payment_status=PaymentStatus.PENDING,
            order_status=OrderStatus.PENDING,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            total_amount=subtotal + shipping_cost + tax_amount,
            notes=notes,
        )
        self.db.add(order)
        await self.db.flush()

        for item in cart.items:
            product = item.product
            self.db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    seller_id=product.store.user_id,
                    store_id=product.store_id,
                    product_name=product.name,
                    price=item.price,
                    quantity=item.quantity,
                    size_id=item.size_id,
                    color_id=item.color_id,
                )
            )

            result = await self.db.execute(
                update(Product)
                .where(Product.id == product.id, Product.stock >= item.quantity)
                .values(
                    stock=Product.stock - item.quantity,
                    purchases=Product.purchases + item.quantity,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(f"Stock changed during checkout for product {product.id}")
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}. Requested: {item.quantity}"
                )

        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        cart.total_items = 0
        cart.total_price = Decimal("0")
        await self.db.flush()

        logger.info(
            f"Order {order.order_number} placed by customer {customer_id}: "
            f"{len(cart.items)} lines, total {order.total_amount}"
        )
        return await self.get_order(order.id)

    # ==================== Queries ====================

    async def get_order(self, order_id: int, customer_id: int | None = None) -> Order:
        """
        Get an order with its items.

        Args:
            order_id: Order ID
            customer_id: Restrict to this customer's orders

        Raises:
            NotFoundError: No such order (for this customer)
        """
        query = (
            select(Order)
            .options(*ORDER_LOAD_OPTIONS)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        if customer_id is not None:
            query = query.where(Order.customer_id == customer_id)

        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _orders_query(
        self,
        customer_id: int | None = None,
        status: str | None = None,
    ) -> Select:
        query = select(Order).options(*ORDER_LOAD_OPTIONS)
        if customer_id is not None:
            query = query.where(Order.customer_id == customer_id)
        if status:
            query = query.where(Order.order_status == parse_order_status(status))
        return query.order_by(Order.created_at.desc(), Order.id.desc())

    async def get_orders(
        self,
        customer_id: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Order], int]:
        """Orders newest first, optionally for one customer and status."""
        return await paginate(self.db, self._orders_query(customer_id, status), page, limit)

    async def get_seller_orders(
        self,
        seller_id: int,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[tuple[Order, list[OrderItem]]], int]:
        """Orders containing the seller's items, paired with those items only."""
        query = self._orders_query(status=status).where(
            Order.items.any(OrderItem.seller_id == seller_id)
        )
        orders, total = await paginate(self.db, query, page, limit)
        return [
            (order, [item for item in order.items if item.seller_id == seller_id])
            for order in orders
        ], total

    async def get_order_stats(self) -> dict[str, Any]:
        """Status breakdown and revenue across all orders."""
        breakdown_query = select(Order.order_status, func.count(Order.id)).group_by(
            Order.order_status
        )
        breakdown = {status.value: 0 for status in OrderStatus}
        for status, count in await self.db.execute(breakdown_query):
            breakdown[status.value] = count

        revenue_query = select(func.coalesce(func.sum(Order.total_amount), 0))
        revenue = (await self.db.execute(revenue_query)).scalar_one()
        return {
            "statusBreakdown": breakdown,
            "totalRevenue": float(revenue),
        }

    # ==================== Status ====================

    async def update_order_status(
        self,
        order_id: int,
        status: str | None = None,
        payment_status: str | None = None,
        seller_id: int | None = None,
    ) -> Order:
        """
        Move an order through its lifecycle.

        Cancelling returns the ordered quantities to stock.

        Args:
            order_id: Order ID
            status: New order status
            payment_status: New payment status
            seller_id: When set, the seller must own an item in the order

        Raises:
            NotFoundError: Order not found
            ForbiddenError: Seller has no items in the order
            BadRequestError: Invalid value or transition
        """
        if status is None and payment_status is None:
            raise BadRequestError("Order status or payment status is required")

        new_status = parse_order_status(status) if status else None
        new_payment = parse_payment_status(payment_status) if payment_status else None

        order = await self.get_order(order_id)

        if seller_id is not None and not any(
            item.seller_id == seller_id for item in order.items
        ):
            raise ForbiddenError("You can only update orders that contain your products")

        if new_status and new_status != order.order_status:
            if not can_transition(order.order_status, new_status):
                raise BadRequestError(
                    f"Cannot change order status from {order.order_status.value} "
                    f"to {new_status.value}"
                )
            if new_status == OrderStatus.CANCELLED:
                await self._restock(order)
            logger.info(
                f"Order {order.order_number}: {order.order_status.value} -> {new_status.value}"
            )
            order.order_status = new_status

        if new_payment:
            order.payment_status = new_payment

        await self.db.flush()
        return await self.get_order(order.id)

    async def _restock(self, order: Order) -> None:
        for item in order.items:
            if item.product_id is None:
                continue
            await self.db.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .values(
                    stock=Product.stock + item.quantity,
                    purchases=case(
                        (Product.purchases >= item.quantity, Product.purchases - item.quantity),
                        else_=0,
                    ),
                )
                .execution_options(synchronize_session=False)
            )
