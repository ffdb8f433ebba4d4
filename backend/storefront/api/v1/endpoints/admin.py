"""
Admin API Endpoints.

Marketplace oversight (sellers, customers, products, orders) and
catalog attribute management. Fixed paths are declared before the
generic /{kind} routes.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_admin, require_roles
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import (
    attribute_to_dict,
    order_to_dict,
    product_detail,
    store_to_dict,
    user_to_dict,
)
from storefront.core.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.core.pagination import pagination_meta
from storefront.core.responses import Message, success_response
from storefront.models import User, UserRole
from storefront.modules.admin import AdminService, AttributeService
from storefront.modules.shop import OrderService

router = APIRouter()


# ==================== Schemas ====================


class AttributeRequest(CamelModel):
    """Catalog attribute fields; which apply depends on the kind."""

    name: str | None = None
    description: str | None = None
    hex_code: str | None = None
    type: str | None = None
    is_active: bool | None = None


class SellerApprovalRequest(CamelModel):
    """Seller approval decision."""

    status: str | None = None


class UpdateOrderRequest(CamelModel):
    """Order and payment status change."""

    order_id: int | None = None
    order_status: str | None = None
    payment_status: str | None = None


def _seller_to_dict(seller: User) -> dict:
    data = user_to_dict(seller)
    data["store"] = store_to_dict(seller.store) if seller.store else None
    return data


# ==================== Sellers ====================


@router.get("/seller")
async def get_all_sellers(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    sellers = await AdminService(db).get_sellers()
    return success_response([_seller_to_dict(s) for s in sellers])


@router.get("/sellers")
async def get_sellers(
    status: str | None = Query(None, description="pending, approved or rejected"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    sellers = await AdminService(db).get_sellers(status=status)
    return success_response([_seller_to_dict(s) for s in sellers])


@router.put("/seller/{seller_id}/approval")
async def set_seller_approval(
    seller_id: int,
    request: SellerApprovalRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    seller = await AdminService(db).set_seller_approval(seller_id, request.status)
    return success_response(_seller_to_dict(seller), Message.UPDATE)


# ==================== Customers & Products ====================


@router.get("/customer")
async def get_customers(
    user: User = Depends(require_roles(UserRole.ADMIN, UserRole.SELLER)),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    customers = await AdminService(db).get_customers()
    return success_response([user_to_dict(c) for c in customers])


@router.get("/products")
async def get_products(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    products = await AdminService(db).get_products()
    return success_response([product_detail(p) for p in products])


# ==================== Orders ====================


@router.get("/orders")
async def get_orders(
    status: str | None = Query(None),
    customer_id: int | None = Query(None, alias="customerId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """All orders with status breakdown and revenue."""
    orders = OrderService(db)
    items, total = await orders.get_orders(
        customer_id=customer_id, status=status, page=page, limit=limit
    )
    return success_response(
        {
            "orders": [order_to_dict(o) for o in items],
            "pagination": pagination_meta(page, limit, total),
            "stats": await orders.get_order_stats(),
        }
    )


@router.get("/orders/{order_id}")
async def get_order(
    order_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    order = await OrderService(db).get_order(order_id)
    return success_response(order_to_dict(order))


@router.patch("/orders")
async def update_order(
    request: UpdateOrderRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    if request.order_id is None:
        raise BadRequestError("Order ID is required")

    order = await OrderService(db).update_order_status(
        request.order_id,
        status=request.order_status,
        payment_status=request.payment_status,
    )
    return success_response(order_to_dict(order), Message.UPDATE)


# ==================== Attributes ====================


@router.post("/{kind}", status_code=201)
async def create_attribute(
    kind: str,
    request: AttributeRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Create a category, brand, color, material, size or tag."""
    attribute = await AttributeService(db, kind).create(request.model_dump())
    return success_response(attribute_to_dict(attribute), Message.CREATE, 201)


@router.get("/{kind}")
async def get_attributes(
    kind: str,
    type: str | None = Query(None, description="Size type filter"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    attributes = await AttributeService(db, kind).list_all(
        active_only=not include_inactive, type_=type
    )
    return success_response([attribute_to_dict(a) for a in attributes])


@router.patch("/{kind}/{attribute_id}")
async def update_attribute(
    kind: str,
    attribute_id: int,
    request: AttributeRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    attribute = await AttributeService(db, kind).update(
        attribute_id, request.model_dump(exclude_unset=True)
    )
    return success_response(attribute_to_dict(attribute), Message.UPDATE)


@router.delete("/{kind}/{attribute_id}")
async def delete_attribute(
    kind: str,
    attribute_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    attribute = await AttributeService(db, kind).deactivate(attribute_id)
    return success_response(attribute_to_dict(attribute), Message.DELETE)
