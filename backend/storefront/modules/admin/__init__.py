"""
Admin Module - Catalog attributes and marketplace oversight.
"""

from storefront.modules.admin.attributes import ATTRIBUTE_MODELS, AttributeService
from storefront.modules.admin.service import AdminService

__all__ = [
    "ATTRIBUTE_MODELS",
    "AdminService",
    "AttributeService",
]
