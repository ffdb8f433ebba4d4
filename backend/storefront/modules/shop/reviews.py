"""
Review Service - Product reviews and rating statistics.
"""

from typing import Any

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError
from storefront.core.pagination import paginate
from storefront.models import Product, Review

REVIEW_SORTS = {
    "newest": (Review.created_at.desc(), Review.id.desc()),
    "oldest": (Review.created_at.asc(), Review.id.asc()),
    "highest": (Review.rating.desc(), Review.created_at.desc()),
    "lowest": (Review.rating.asc(), Review.created_at.desc()),
    # No helpfulness votes are stored yet
    "helpful": (Review.created_at.desc(), Review.id.desc()),
}


def validate_rating(rating: int | None) -> int:
    if rating is None:
        raise BadRequestError("Rating is required")
    if not 1 <= rating <= 5:
        raise BadRequestError("Rating must be between 1 and 5")
    return rating


def _clean(text: str | None) -> str | None:
    if text is None:
        return None
    return text.strip() or None


class ReviewService:
    """
    Service for customer reviews.

    Every write recomputes the product's average_rating and review_count.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize review service with database session."""
        self.db = db

    async def _active_product(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")
        return product

    async def recalculate_product_rating(self, product_id: int) -> None:
        """Refresh average_rating (one decimal) and review_count."""
        stats_query = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.product_id == product_id
        )
        average, count = (await self.db.execute(stats_query)).one()
        await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                average_rating=round(float(average), 1) if count else 0.0,
                review_count=count,
            )
            .execution_options(synchronize_session="fetch")
        )

    async def get_rating_distribution(self, product_id: int) -> dict[int, int]:
        """Review counts per star, 5 down to 1."""
        query = (
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id)
            .group_by(Review.rating)
        )
        counts = {rating: count for rating, count in await self.db.execute(query)}
        return {stars: counts.get(stars, 0) for stars in range(5, 0, -1)}

    # ==================== Queries ====================

    async def get_product_reviews(
        self,
        product_id: int,
        page: int = 1,
        limit: int = 10,
        rating: int | None = None,
        sort_by: str = "newest",
    ) -> dict[str, Any]:
        """
        Public reviews for an active product.

        Returns:
            Dict with product, reviews, total and ratingStats
        """
        product = await self._active_product(product_id)
        if sort_by not in REVIEW_SORTS:
            raise BadRequestError(f"Invalid sort option. Use one of: {', '.join(REVIEW_SORTS)}")

        query = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.product_id == product_id)
            .order_by(*REVIEW_SORTS[sort_by])
        )
        if rating is not None:
            query = query.where(Review.rating == validate_rating(rating))

        reviews, total = await paginate(self.db, query, page, limit)
        return {
            "product": product,
            "reviews": reviews,
            "total": total,
            "ratingStats": await self.get_rating_distribution(product_id),
        }

    async def get_reviews(
        self,
        user_id: int,
        product_id: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Review], int]:
        """Reviews for a product, or the user's own reviews when no product is given."""
        query = select(Review).options(selectinload(Review.user))
        if product_id is not None:
            query = query.where(Review.product_id == product_id)
        else:
            query = query.where(Review.user_id == user_id)
        query = query.order_by(Review.created_at.desc(), Review.id.desc())
        return await paginate(self.db, query, page, limit)

    async def get_recent_reviews(self, product_id: int, limit: int = 5) -> tuple[list[Review], int]:
        """Newest reviews for a product plus the total count."""
        query = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.product_id == product_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return await paginate(self.db, query, 1, limit)

    async def get_own_review(self, user_id: int, review_id: int) -> Review:
        query = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.id == review_id, Review.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        review = (await self.db.execute(query)).scalar_one_or_none()
        if not review:
            raise NotFoundError("Review not found")
        return review

    # ==================== Mutations ====================

    async def create_review(
        self,
        user_id: int,
        product_id: int | None,
        rating: int | None,
        title: str | None = None,
        comment: str | None = None,
    ) -> Review:
        """
        Review a product once.

        Raises:
            BadRequestError: Missing product or rating out of range
            NotFoundError: Product missing or inactive
            ConflictError: User already reviewed this product
        """
        if product_id is None:
            raise BadRequestError("Product ID is required")
        validate_rating(rating)
        await self._active_product(product_id)

        existing = await self.db.execute(
            select(Review.id).where(
                Review.user_id == user_id, Review.product_id == product_id
            )
        )
        if existing.first():
            raise ConflictError("You have already reviewed this product")

        review = Review(
            user_id=user_id,
            product_id=product_id,
            rating=rating,
            title=_clean(title),
            comment=_clean(comment),
        )
        self.db.add(review)
        await self.db.flush()
        await self.recalculate_product_rating(product_id)

        logger.info(f"User {user_id} reviewed product {product_id} ({rating} stars)")
        return await self.get_own_review(user_id, review.id)

    async def update_review(
        self,
        user_id: int,
        review_id: int,
        rating: int | None = None,
        title: str | None = None,
        comment: str | None = None,
    ) -> Review:
        """Partially update the user's own review."""
        review = await self.get_own_review(user_id, review_id)

        if rating is not None:
            review.rating = validate_rating(rating)
        if title is not None:
            review.title = _clean(title)
        if comment is not None:
            review.comment = _clean(comment)

        await self.db.flush()
        await self.recalculate_product_rating(review.product_id)
        return await self.get_own_review(user_id, review_id)

    async def delete_review(self, user_id: int, review_id: int) -> None:
        """Delete the user's own review."""
        review = await self.get_own_review(user_id, review_id)
        product_id = review.product_id
        await self.db.delete(review)
        await self.db.flush()
        await self.recalculate_product_rating(product_id)
