"""
Catalog API Endpoints.

Public product browsing: listings, search, featured groups,
categories, brands, product detail and product reviews.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.serializers import (
    attribute_to_dict,
    product_detail,
    product_summary,
    review_to_dict,
)
from storefront.core.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.core.pagination import pagination_meta
from storefront.core.responses import success_response
from storefront.modules.shop import ReviewService, ShopService

router = APIRouter()


def _parse_ids(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise BadRequestError("Tag IDs must be integers") from None


# ==================== Listings ====================


@router.get("")
async def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Latest active products."""
    shop = ShopService(db)
    products, total = await shop.get_products(page=page, limit=limit)
    return success_response(
        {
            "products": [product_summary(p) for p in products],
            "pagination": pagination_meta(page, limit, total),
        }
    )


@router.get("/search")
async def search_products(
    q: str | None = Query(None, description="Search in product names"),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Case-insensitive product name search."""
    if not q or not q.strip():
        raise BadRequestError("Search query is required")

    shop = ShopService(db)
    products = await shop.search_products(q, limit=limit)
    return success_response(
        {
            "query": q.strip(),
            "products": [product_summary(p) for p in products],
            "count": len(products),
        }
    )


@router.get("/featured")
async def get_featured_products(
    type: str = Query("all", description="all, topRated, bestSelling or newArrivals"),
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Featured product groups for the storefront home page."""
    shop = ShopService(db)
    groups = await shop.get_featured(kind=type, limit=limit)

    if type == "all":
        products = {name: [product_summary(p) for p in items] for name, items in groups.items()}
        count = sum(len(items) for items in groups.values())
    else:
        products = [product_summary(p) for p in groups[type]]
        count = len(products)

    return success_response({"type": type, "products": products, "count": count})


@router.get("/related")
async def get_related_by_tags(
    tags: str = Query(..., description="Comma-separated tag IDs"),
    include_count: bool = Query(False, alias="includeCount"),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Products sharing any of the given tags."""
    tag_ids = _parse_ids(tags)
    shop = ShopService(db)
    products, counts = await shop.get_products_by_tags(tag_ids, include_count=include_count)

    data = {
        "tags": tag_ids,
        "products": [product_summary(p) for p in products],
        "count": len(products),
    }
    if include_count:
        data["tagCounts"] = {str(tag_id): counts.get(tag_id, 0) for tag_id in tag_ids}
    return success_response(data)


# ==================== Categories & Brands ====================


@router.get("/categories")
async def get_categories(
    include_count: bool = Query(False, alias="includeCount"),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Active categories."""
    shop = ShopService(db)
    categories = await shop.get_categories(include_count=include_count)

    items = []
    for category, count in categories:
        data = attribute_to_dict(category)
        if include_count:
            data["productCount"] = count
        items.append(data)
    return success_response(items)


@router.get("/category/{category_id}")
async def get_category_products(
    category_id: int,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Products in one category."""
    shop = ShopService(db)
    category, products, total = await shop.get_category_products(
        category_id,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return success_response(
        {
            "category": attribute_to_dict(category),
            "products": [product_summary(p) for p in products],
            "pagination": pagination_meta(page, limit, total),
            "filters": {"sortBy": sort_by, "sortOrder": sort_order},
        }
    )


@router.get("/brands")
async def get_brands(
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """All brands."""
    shop = ShopService(db)
    brands = await shop.get_brands()
    return success_response([attribute_to_dict(b) for b in brands])


# ==================== Product Detail ====================


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    include_reviews: bool = Query(False, alias="includeReviews"),
    include_related: bool = Query(False, alias="includeRelated"),
    reviews_limit: int = Query(5, ge=1, le=50, alias="reviewsLimit"),
    related_limit: int = Query(4, ge=1, le=20, alias="relatedLimit"),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Product detail with optional recent reviews and related products."""
    shop = ShopService(db)
    product = await shop.get_active_product(product_id, detail=True)
    data = {"product": product_detail(product)}

    if include_reviews:
        reviews, total = await ReviewService(db).get_recent_reviews(
            product_id, limit=reviews_limit
        )
        data["reviews"] = {
            "items": [review_to_dict(r) for r in reviews],
            "total": total,
            "hasMore": total > len(reviews),
        }

    if include_related:
        related = await shop.get_related_products(product, limit=related_limit)
        data["relatedProducts"] = [product_summary(p) for p in related]

    return success_response(data)


@router.get("/{product_id}/reviews")
async def get_product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: int | None = Query(None),
    sort_by: str = Query("newest", alias="sortBy"),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Paginated reviews with the star distribution."""
    reviews = ReviewService(db)
    result = await reviews.get_product_reviews(
        product_id,
        page=page,
        limit=limit,
        rating=rating,
        sort_by=sort_by,
    )
    product = result["product"]
    return success_response(
        {
            "reviews": [review_to_dict(r) for r in result["reviews"]],
            "pagination": pagination_meta(page, limit, result["total"]),
            "ratingStats": {str(stars): count for stars, count in result["ratingStats"].items()},
            "productStats": {
                "averageRating": product.average_rating,
                "reviewCount": product.review_count,
            },
        }
    )
