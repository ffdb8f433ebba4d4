"""
Review API Endpoints.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_customer
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import review_to_dict
from storefront.core.database import get_db
from storefront.core.pagination import pagination_meta
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.shop import ReviewService

router = APIRouter()


# ==================== Schemas ====================


class CreateReviewRequest(CamelModel):
    """Review a product."""

    product_id: int | None = None
    rating: int | None = None
    title: str | None = None
    comment: str | None = None


class UpdateReviewRequest(CamelModel):
    """Edit an existing review."""

    rating: int | None = None
    title: str | None = None
    comment: str | None = None


# ==================== Reviews ====================


@router.get("")
async def get_reviews(
    product_id: int | None = Query(None, alias="productId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Reviews of a product, or the customer's own reviews."""
    reviews = ReviewService(db)
    items, total = await reviews.get_reviews(
        customer.id, product_id=product_id, page=page, limit=limit
    )
    return success_response(
        {
            "reviews": [review_to_dict(r) for r in items],
            "pagination": pagination_meta(page, limit, total),
        }
    )


@router.post("", status_code=201)
async def create_review(
    request: CreateReviewRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Review a product (once per product)."""
    reviews = ReviewService(db)
    review = await reviews.create_review(
        customer.id,
        request.product_id,
        request.rating,
        title=request.title,
        comment=request.comment,
    )
    return success_response(review_to_dict(review), Message.CREATE, 201)


@router.get("/{review_id}")
async def get_review(
    review_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    reviews = ReviewService(db)
    review = await reviews.get_own_review(customer.id, review_id)
    return success_response(review_to_dict(review))


@router.put("/{review_id}")
async def update_review(
    review_id: int,
    request: UpdateReviewRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    reviews = ReviewService(db)
    review = await reviews.update_review(
        customer.id,
        review_id,
        rating=request.rating,
        title=request.title,
        comment=request.comment,
    )
    return success_response(review_to_dict(review), Message.UPDATE)


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    reviews = ReviewService(db)
    await reviews.delete_review(customer.id, review_id)
    return success_response(None, Message.DELETE)
