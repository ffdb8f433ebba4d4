"""
Account Module - Users, authentication and saved addresses.
"""

from storefront.modules.account.service import AccountService

__all__ = ["AccountService"]
