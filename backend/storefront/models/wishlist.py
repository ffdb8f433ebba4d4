"""
Wishlist models.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.database import Base, utcnow

if TYPE_CHECKING:
    from storefront.models.catalog import Color, Product, Size

DEFAULT_WISHLIST_NAME = "My Wishlist"
DEFAULT_WISHLIST_DESCRIPTION = "Your default wishlist for saving favorite products"


class WishlistPriority(str, PyEnum):
    """How much the customer wants the item."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Wishlist(Base):
    """Named product list owned by a customer."""

    __tablename__ = "wishlists"
    __table_args__ = (
        UniqueConstraint("customer_id", "name", name="uq_wishlists_customer_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(String(500))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    items: Mapped[list["WishlistItem"]] = relationship(back_populates="wishlist")

    def __repr__(self) -> str:
        return f"<Wishlist {self.name}>"


class WishlistItem(Base):
    """Product saved to a wishlist."""

    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint("wishlist_id", "product_id", name="uq_wishlist_items_product"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    wishlist_id: Mapped[int] = mapped_column(ForeignKey("wishlists.id"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    size_id: Mapped[int | None] = mapped_column(ForeignKey("sizes.id"))
    color_id: Mapped[int | None] = mapped_column(ForeignKey("colors.id"))
    notes: Mapped[str | None] = mapped_column(String(500))
    priority: Mapped[WishlistPriority] = mapped_column(
        Enum(WishlistPriority), default=WishlistPriority.MEDIUM
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    wishlist: Mapped["Wishlist"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()
    size: Mapped["Size | None"] = relationship()
    color: Mapped["Color | None"] = relationship()
