"""
Wishlist Module - Saved products per customer.
"""

from storefront.modules.wishlist.service import WishlistService

__all__ = ["WishlistService"]
