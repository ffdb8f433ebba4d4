"""
Seller API Endpoints.

Store, product and order management for the authenticated seller,
plus read access to catalog attributes.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_seller
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import (
    attribute_to_dict,
    order_to_dict,
    product_detail,
    store_to_dict,
)
from storefront.core.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.core.pagination import pagination_meta
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.admin import AttributeService
from storefront.modules.seller import SellerService
from storefront.modules.shop import OrderService

router = APIRouter()

# Request keys that name attribute references
REFERENCE_KEYS = {
    "category": "category_id",
    "brand": "brand_id",
    "size": "size_id",
    "color": "color_id",
    "material": "material_id",
}


# ==================== Schemas ====================


class StoreRequest(CamelModel):
    """Store details."""

    store_name: str | None = None
    store_description: str | None = None
    store_image: str | None = None
    is_active: bool | None = None


class CreateProductRequest(CamelModel):
    """New product listing."""

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    stock: int | None = None
    category: int | None = None
    brand: int | None = None
    size: int | None = None
    color: int | None = None
    material: int | None = None
    tags: list[int] = []
    images: list[str] = []


class UpdateProductRequest(CamelModel):
    """Product changes."""

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    stock: int | None = None
    category: int | None = None
    brand: int | None = None
    size: int | None = None
    color: int | None = None
    material: int | None = None
    tags: list[int] | None = None
    images: list[str] | None = None
    is_active: bool | None = None


class UpdateOrderStatusRequest(CamelModel):
    """Fulfilment update."""

    order_id: int | None = None
    order_status: str | None = None


class BrandRequest(CamelModel):
    """New brand."""

    name: str | None = None
    description: str | None = None


def _product_fields(request: CamelModel) -> dict:
    data = request.model_dump(exclude_unset=True)
    return {REFERENCE_KEYS.get(key, key): value for key, value in data.items()}


# ==================== Store ====================


@router.post("/store", status_code=201)
async def create_store(
    request: StoreRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    store = await service.create_store(
        request.store_name,
        store_description=request.store_description,
        store_image=request.store_image,
    )
    return success_response(store_to_dict(store), Message.CREATE, 201)


@router.get("/store")
async def get_store(
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    store = await service.find_store()
    return success_response([store_to_dict(store)] if store else [])


@router.patch("/store/{store_id}")
async def update_store(
    store_id: int,
    request: StoreRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    store = await service.update_store(store_id, request.model_dump(exclude_unset=True))
    return success_response(store_to_dict(store), Message.UPDATE)


@router.delete("/store/{store_id}")
async def delete_store(
    store_id: int,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    await service.delete_store(store_id)
    return success_response(None, Message.DELETE)


@router.get("/status")
async def get_status(
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Approval state and whether the seller has opened a store."""
    service = SellerService(db, seller)
    return success_response(await service.get_status())


# ==================== Products ====================


@router.post("/products", status_code=201)
async def create_product(
    request: CreateProductRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    product = await service.create_product(_product_fields(request))
    return success_response(product_detail(product), Message.CREATE, 201)


@router.get("/products")
async def get_products(
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    products = await service.get_products()
    return success_response([product_detail(p) for p in products])


@router.patch("/products/{product_id}")
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    product = await service.update_product(product_id, _product_fields(request))
    return success_response(product_detail(product), Message.UPDATE)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    service = SellerService(db, seller)
    await service.delete_product(product_id)
    return success_response(None, Message.DELETE)


# ==================== Orders ====================


@router.get("/orders")
async def get_orders(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Orders containing this seller's products, showing only those lines."""
    orders = OrderService(db)
    items, total = await orders.get_seller_orders(
        seller.id, status=status, page=page, limit=limit
    )
    return success_response(
        {
            "orders": [
                order_to_dict(order, items=lines, items_key="sellerItems")
                for order, lines in items
            ],
            "pagination": pagination_meta(page, limit, total),
        }
    )


@router.patch("/orders")
async def update_order_status(
    request: UpdateOrderStatusRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    if request.order_id is None or not request.order_status:
        raise BadRequestError("Order ID and status are required")

    orders = OrderService(db)
    order = await orders.update_order_status(
        request.order_id,
        status=request.order_status,
        seller_id=seller.id,
    )
    lines = [item for item in order.items if item.seller_id == seller.id]
    return success_response(
        order_to_dict(order, items=lines, items_key="sellerItems"), Message.UPDATE
    )


# ==================== Attributes ====================


@router.get("/brands")
async def get_brands(
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    brands = await AttributeService(db, "brands").list_all()
    return success_response([attribute_to_dict(b) for b in brands])


@router.post("/brands", status_code=201)
async def create_brand(
    request: BrandRequest,
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    brand = await AttributeService(db, "brands").create(request.model_dump())
    return success_response(attribute_to_dict(brand), Message.CREATE, 201)


@router.get("/{kind}")
async def get_attributes(
    kind: str,
    type: str | None = Query(None, description="Size type filter"),
    seller: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Active colors, materials, sizes or tags."""
    if kind not in ("colors", "materials", "sizes", "tags"):
        raise BadRequestError(f"Unknown attribute type: {kind}")
    attributes = await AttributeService(db, kind).list_all(type_=type)
    return success_response([attribute_to_dict(a) for a in attributes])
