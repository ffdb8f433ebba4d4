"""
Checkout and Order API Endpoints.

Customer-side order placement and history.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_customer
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import order_to_dict
from storefront.core.database import get_db
from storefront.core.pagination import pagination_meta
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.shop import OrderService

router = APIRouter()


# ==================== Schemas ====================


class ShippingAddress(CamelModel):
    """Shipping address for one order."""

    name: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone: str | None = None


class CheckoutRequest(CamelModel):
    """Place an order from the cart."""

    shipping_address: ShippingAddress | None = None
    address_id: int | None = None
    notes: str | None = None


# ==================== Checkout ====================


@router.post("/checkout", status_code=201)
async def checkout(
    request: CheckoutRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """
    Place a cash-on-delivery order for everything in the cart.

    Stock is decremented, prices are frozen on the order lines and the
    cart is emptied, all in one transaction.
    """
    orders = OrderService(db)
    shipping = await orders.resolve_shipping_address(
        customer.id,
        shipping=request.shipping_address.model_dump() if request.shipping_address else None,
        address_id=request.address_id,
    )
    order = await orders.place_order(customer.id, shipping, notes=request.notes)
    return success_response(order_to_dict(order), Message.CREATE, 201)


# ==================== Orders ====================


@router.get("/orders")
async def get_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = Query(None),
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Customer's orders, newest first."""
    orders = OrderService(db)
    items, total = await orders.get_orders(
        customer_id=customer.id, status=status, page=page, limit=limit
    )
    pagination = pagination_meta(page, limit, total)
    pagination["totalOrders"] = total
    return success_response(
        {
            "orders": [order_to_dict(o) for o in items],
            "pagination": pagination,
        }
    )


@router.get("/orders/{order_id}")
async def get_order(
    order_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """One of the customer's orders."""
    orders = OrderService(db)
    order = await orders.get_order(order_id, customer_id=customer.id)
    return success_response(order_to_dict(order))
