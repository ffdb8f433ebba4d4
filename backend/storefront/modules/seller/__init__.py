"""
Seller Module - Store and product management.
"""

from storefront.modules.seller.service import SellerService

__all__ = ["SellerService"]
