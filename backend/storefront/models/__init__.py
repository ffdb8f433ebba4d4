"""
Database models.

Importing this package registers every table on Base.metadata.
"""

from storefront.models.catalog import (
    Brand,
    Category,
    Color,
    Material,
    Product,
    Size,
    Store,
    Tag,
    product_tags,
)
from storefront.models.shop import (
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Review,
)
from storefront.models.user import Address, SellerStatus, User, UserRole
from storefront.models.wishlist import Wishlist, WishlistItem, WishlistPriority

__all__ = [
    "Address",
    "Brand",
    "Cart",
    "CartItem",
    "Category",
    "Color",
    "Material",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "Review",
    "SellerStatus",
    "Size",
    "Store",
    "Tag",
    "User",
    "UserRole",
    "Wishlist",
    "WishlistItem",
    "WishlistPriority",
    "product_tags",
]
