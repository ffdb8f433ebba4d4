"""
Offset pagination helpers.
"""

from math import ceil
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Any], int]:
    """
    Run a select for one page.

    Args:
        db: Database session
        query: Ordered select statement
        page: 1-based page number
        limit: Page size

    Returns:
        (rows for the page, total row count)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    offset = (max(page, 1) - 1) * limit
    result = await db.execute(query.limit(limit).offset(offset))
    return list(result.scalars().all()), total


def pagination_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    """Pagination block returned alongside list payloads."""
    total_pages = ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "limit": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }
