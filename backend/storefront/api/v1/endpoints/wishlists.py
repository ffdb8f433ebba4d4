"""
Wishlist API Endpoints.

Static paths (/default, /items) are declared before /{wishlist_id}.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_customer
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import wishlist_item_to_dict, wishlist_to_dict
from storefront.core.database import get_db
from storefront.core.pagination import pagination_meta
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.wishlist import WishlistService

router = APIRouter()


# ==================== Schemas ====================


class CreateWishlistRequest(CamelModel):
    """New wishlist."""

    name: str | None = None
    description: str | None = None
    is_public: bool = False


class UpdateWishlistRequest(CamelModel):
    """Wishlist changes."""

    name: str | None = None
    description: str | None = None
    is_public: bool | None = None


class AddWishlistItemRequest(CamelModel):
    """Save a product."""

    product_id: int | None = None
    size: int | None = None
    color: int | None = None
    notes: str | None = None
    priority: str | None = None


class UpdateWishlistItemRequest(CamelModel):
    """Saved item changes."""

    size: int | None = None
    color: int | None = None
    notes: str | None = None
    priority: str | None = None


# ==================== Wishlists ====================


@router.get("")
async def get_wishlists(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Customer's wishlists; the default one is created on first access."""
    wishlists = WishlistService(db)
    items, total = await wishlists.get_wishlists(customer.id, page=page, limit=limit)
    return success_response(
        {
            "wishlists": [wishlist_to_dict(w, item_count=count) for w, count in items],
            "pagination": pagination_meta(page, limit, total),
        }
    )


@router.post("", status_code=201)
async def create_wishlist(
    request: CreateWishlistRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    wishlist = await wishlists.create_wishlist(
        customer.id,
        request.name,
        description=request.description,
        is_public=request.is_public,
    )
    return success_response(wishlist_to_dict(wishlist, item_count=0), Message.CREATE, 201)


@router.get("/default")
async def get_default_wishlist(
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Default wishlist with its items, created if missing."""
    wishlists = WishlistService(db)
    wishlist = await wishlists.get_or_create_default(customer.id)
    items = await wishlists.get_wishlist_items(wishlist.id)
    return success_response(wishlist_to_dict(wishlist, items=items))


@router.post("/default", status_code=201)
async def create_default_wishlist(
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    wishlist = await wishlists.create_default(customer.id)
    return success_response(wishlist_to_dict(wishlist, items=[]), Message.CREATE, 201)


@router.get("/items")
async def get_wishlist_items(
    wishlist_id: int | None = Query(None, alias="wishlistId"),
    product_id: int | None = Query(None, alias="productId"),
    priority: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Saved items across wishlists, highest priority first."""
    wishlists = WishlistService(db)
    items, total = await wishlists.get_items(
        customer.id,
        wishlist_id=wishlist_id,
        product_id=product_id,
        priority=priority,
        page=page,
        limit=limit,
    )
    return success_response(
        {
            "items": [wishlist_item_to_dict(item) for item in items],
            "pagination": pagination_meta(page, limit, total),
        }
    )


@router.get("/{wishlist_id}")
async def get_wishlist(
    wishlist_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    wishlist = await wishlists.get_wishlist(customer.id, wishlist_id)
    items = await wishlists.get_wishlist_items(wishlist.id)
    return success_response(wishlist_to_dict(wishlist, items=items))


@router.put("/{wishlist_id}")
async def update_wishlist(
    wishlist_id: int,
    request: UpdateWishlistRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    wishlist = await wishlists.update_wishlist(
        customer.id,
        wishlist_id,
        name=request.name,
        description=request.description,
        is_public=request.is_public,
    )
    return success_response(wishlist_to_dict(wishlist), Message.UPDATE)


@router.delete("/{wishlist_id}")
async def delete_wishlist(
    wishlist_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    await wishlists.delete_wishlist(customer.id, wishlist_id)
    return success_response(None, Message.DELETE)


# ==================== Items ====================


@router.post("/{wishlist_id}/items", status_code=201)
async def add_wishlist_item(
    wishlist_id: int,
    request: AddWishlistItemRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    item = await wishlists.add_item(
        customer.id,
        wishlist_id,
        request.product_id,
        size_id=request.size,
        color_id=request.color,
        notes=request.notes,
        priority=request.priority,
    )
    return success_response(wishlist_item_to_dict(item), Message.CREATE, 201)


@router.put("/{wishlist_id}/items/{item_id}")
async def update_wishlist_item(
    wishlist_id: int,
    item_id: int,
    request: UpdateWishlistItemRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    changes = request.model_dump(exclude_unset=True)
    fields = {
        {"size": "size_id", "color": "color_id"}.get(key, key): value
        for key, value in changes.items()
    }

    wishlists = WishlistService(db)
    item = await wishlists.update_item(customer.id, wishlist_id, item_id, fields)
    return success_response(wishlist_item_to_dict(item), Message.UPDATE)


@router.delete("/{wishlist_id}/items/{item_id}")
async def remove_wishlist_item(
    wishlist_id: int,
    item_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    wishlists = WishlistService(db)
    await wishlists.remove_item(customer.id, wishlist_id, item_id)
    return success_response(None, Message.DELETE)
