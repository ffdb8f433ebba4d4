"""
Cart API Endpoints.

Carts are identified by a customer bearer token when present and by a
guest sessionId otherwise.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_optional_customer, require_customer
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import cart_to_dict
from storefront.core.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.shop import CartService

router = APIRouter()


# ==================== Schemas ====================


class AddToCartRequest(CamelModel):
    """Add item to cart."""

    product_id: int
    quantity: int = 1
    size: int | None = None
    color: int | None = None
    session_id: str | None = None


class UpdateCartItemRequest(CamelModel):
    """Update cart item quantity."""

    quantity: int
    session_id: str | None = None


class MergeCartRequest(CamelModel):
    """Merge a guest cart after login."""

    guest_session_id: str | None = Field(None)


def _cart_owner(customer: User | None, session_id: str | None) -> dict:
    if customer is not None:
        return {"user_id": customer.id}
    if session_id:
        return {"session_id": session_id}
    raise BadRequestError("Either authentication or sessionId is required")


# ==================== Cart ====================


@router.get("")
async def get_cart(
    session_id: str | None = Query(None, alias="sessionId"),
    customer: User | None = Depends(get_optional_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Get the current cart, creating an empty one on first access."""
    carts = CartService(db)
    cart = await carts.get_or_create_cart(**_cart_owner(customer, session_id))
    return success_response(cart_to_dict(cart))


@router.post("")
async def add_to_cart(
    request: AddToCartRequest,
    customer: User | None = Depends(get_optional_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Add a product to the cart."""
    carts = CartService(db)
    cart = await carts.add_item(
        product_id=request.product_id,
        quantity=request.quantity,
        size_id=request.size,
        color_id=request.color,
        **_cart_owner(customer, request.session_id),
    )
    return success_response(cart_to_dict(cart), Message.UPDATE)


@router.delete("")
async def clear_cart(
    session_id: str | None = Query(None, alias="sessionId"),
    customer: User | None = Depends(get_optional_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Remove every item from the cart."""
    carts = CartService(db)
    cart = await carts.clear(**_cart_owner(customer, session_id))
    return success_response(cart_to_dict(cart), Message.DELETE)


# ==================== Items ====================


@router.patch("/items/{item_id}")
async def update_cart_item(
    item_id: int,
    request: UpdateCartItemRequest,
    customer: User | None = Depends(get_optional_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Change the quantity of one cart line."""
    carts = CartService(db)
    cart = await carts.update_item_quantity(
        item_id,
        request.quantity,
        **_cart_owner(customer, request.session_id),
    )
    return success_response(cart_to_dict(cart), Message.UPDATE)


@router.delete("/items/{item_id}")
async def remove_cart_item(
    item_id: int,
    session_id: str | None = Query(None, alias="sessionId"),
    customer: User | None = Depends(get_optional_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Remove one line from the cart."""
    carts = CartService(db)
    cart = await carts.remove_item(item_id, **_cart_owner(customer, session_id))
    return success_response(cart_to_dict(cart), Message.DELETE)


# ==================== Merge ====================


@router.post("/merge")
async def merge_cart(
    request: MergeCartRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Fold the guest session cart into the logged-in customer's cart."""
    if not request.guest_session_id:
        raise BadRequestError("Guest session ID is required")

    carts = CartService(db)
    cart = await carts.merge_guest_cart(customer.id, request.guest_session_id)
    return success_response(
        {"message": "Cart merged successfully", "cart": cart_to_dict(cart)},
        Message.UPDATE,
    )
