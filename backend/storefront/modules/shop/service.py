"""
Shop Service - Public catalog queries.
"""

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.pagination import paginate
from storefront.models import Brand, Category, Product, Tag, product_tags

PRODUCT_CARD_OPTIONS = (
    selectinload(Product.category),
    selectinload(Product.brand),
)

PRODUCT_DETAIL_OPTIONS = PRODUCT_CARD_OPTIONS + (
    selectinload(Product.store),
    selectinload(Product.size),
    selectinload(Product.color),
    selectinload(Product.material),
    selectinload(Product.tags),
)

SORT_FIELDS = {
    "createdAt": Product.created_at,
    "price": Product.price,
    "name": Product.name,
    "averageRating": Product.average_rating,
    "purchases": Product.purchases,
    "popularityScore": Product.popularity_score,
}

FEATURED_TYPES = ("all", "topRated", "bestSelling", "newArrivals")

TOP_RATED_THRESHOLD = 4.0


class ShopService:
    """
    Service for browsing the public catalog.

    Only active products are ever returned from here.

    Usage:
        shop = ShopService(db_session)
        products, total = await shop.get_products(page=1, limit=10)
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize shop service with database session."""
        self.db = db

    def _active_products(self, detail: bool = False) -> Select:
        options = PRODUCT_DETAIL_OPTIONS if detail else PRODUCT_CARD_OPTIONS
        return select(Product).options(*options).where(Product.is_active == True)

    # ==================== Products ====================

    async def get_products(
        self, page: int = 1, limit: int = 10
    ) -> tuple[list[Product], int]:
        """Newest active products, one page at a time."""
        query = self._active_products().order_by(
            Product.created_at.desc(), Product.id.desc()
        )
        return await paginate(self.db, query, page, limit)

    async def get_active_product(self, product_id: int, detail: bool = False) -> Product:
        """
        Get an active product or raise.

        Raises:
            NotFoundError: Product is missing or inactive
        """
        query = self._active_products(detail=detail).where(Product.id == product_id)
        result = await self.db.execute(query)
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def get_related_products(self, product: Product, limit: int = 4) -> list[Product]:
        """Products from the same category or brand, best rated first."""
        query = (
            self._active_products()
            .where(
                Product.id != product.id,
                or_(
                    Product.category_id == product.category_id,
                    Product.brand_id == product.brand_id,
                ),
            )
            .order_by(Product.average_rating.desc(), Product.purchases.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def search_products(self, q: str, limit: int = 10) -> list[Product]:
        """Case-insensitive name search."""
        term = q.strip()
        if not term:
            raise BadRequestError("Search query is required")

        query = (
            self._active_products()
            .where(Product.name.ilike(f"%{term}%"))
            .order_by(Product.name)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_featured(self, kind: str = "all", limit: int = 8) -> dict[str, list[Product]]:
        """
        Featured product groups.

        Args:
            kind: all, topRated, bestSelling or newArrivals
            limit: Max products per group

        Returns:
            Mapping of group name to products
        """
        if kind not in FEATURED_TYPES:
            raise BadRequestError(f"Invalid featured type. Use one of: {', '.join(FEATURED_TYPES)}")

        groups: dict[str, Select] = {
            "topRated": self._active_products()
            .where(Product.average_rating >= TOP_RATED_THRESHOLD)
            .order_by(Product.average_rating.desc(), Product.review_count.desc()),
            "bestSelling": self._active_products().order_by(
                Product.purchases.desc(), Product.id.desc()
            ),
            "newArrivals": self._active_products().order_by(
                Product.created_at.desc(), Product.id.desc()
            ),
        }

        featured = {}
        for name, query in groups.items():
            if kind in ("all", name):
                result = await self.db.execute(query.limit(limit))
                featured[name] = list(result.scalars().all())
        return featured

    async def get_products_by_tags(
        self, tag_ids: list[int], include_count: bool = False
    ) -> tuple[list[Product], dict[int, int]]:
        """Active products carrying any of the given tags."""
        if not tag_ids:
            raise BadRequestError("At least one tag is required")

        query = (
            self._active_products()
            .where(Product.tags.any(Tag.id.in_(tag_ids)))
            .order_by(Product.name)
        )
        result = await self.db.execute(query)
        products = list(result.scalars().all())

        counts: dict[int, int] = {}
        if include_count:
            count_query = (
                select(product_tags.c.tag_id, func.count())
                .join(Product, Product.id == product_tags.c.product_id)
                .where(product_tags.c.tag_id.in_(tag_ids), Product.is_active == True)
                .group_by(product_tags.c.tag_id)
            )
            counts = {tag_id: count for tag_id, count in await self.db.execute(count_query)}
        return products, counts

    # ==================== Categories & Brands ====================

    async def get_categories(self, include_count: bool = False) -> list[tuple[Category, int | None]]:
        """Active categories, optionally with their active product counts."""
        result = await self.db.execute(
            select(Category).where(Category.is_active == True).order_by(Category.name)
        )
        categories = list(result.scalars().all())
        if not include_count:
            return [(category, None) for category in categories]

        count_query = (
            select(Product.category_id, func.count())
            .where(Product.is_active == True)
            .group_by(Product.category_id)
        )
        counts = {cid: count for cid, count in await self.db.execute(count_query)}
        return [(category, counts.get(category.id, 0)) for category in categories]

    async def get_category_products(
        self,
        category_id: int,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 12,
    ) -> tuple[Category, list[Product], int]:
        """Active products in one active category."""
        category = await self.db.get(Category, category_id)
        if not category or not category.is_active:
            raise NotFoundError("Category not found")

        column = SORT_FIELDS.get(sort_by)
        if column is None:
            raise BadRequestError(f"Invalid sort field. Use one of: {', '.join(SORT_FIELDS)}")
        if sort_order not in ("asc", "desc"):
            raise BadRequestError("Sort order must be asc or desc")

        ordering = column.asc() if sort_order == "asc" else column.desc()
        query = (
            self._active_products()
            .where(Product.category_id == category_id)
            .order_by(ordering, Product.id)
        )
        products, total = await paginate(self.db, query, page, limit)
        return category, products, total

    async def get_brands(self) -> list[Brand]:
        """All brands by name."""
        result = await self.db.execute(select(Brand).order_by(Brand.name))
        return list(result.scalars().all())

