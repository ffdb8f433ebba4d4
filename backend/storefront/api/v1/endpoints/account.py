"""
Account API Endpoints.

Customer profile, password, account removal and saved addresses.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import require_customer
from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import address_to_dict, user_to_dict
from storefront.core.database import get_db
from storefront.core.responses import Message, success_response
from storefront.models import User
from storefront.modules.account import AccountService

router = APIRouter()


# ==================== Schemas ====================


class UpdateProfileRequest(CamelModel):
    """Profile changes."""

    name: str | None = None
    email: EmailStr | None = None


class ChangePasswordRequest(CamelModel):
    """Password change."""

    current_password: str | None = None
    new_password: str | None = None


class DeleteAccountRequest(CamelModel):
    """Account removal confirmation."""

    password: str | None = None


class AddressRequest(CamelModel):
    """Saved address."""

    name: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone: str | None = None
    is_default: bool = False


# ==================== Profile ====================


@router.get("/profile")
async def get_profile(
    customer: User = Depends(require_customer),
) -> ORJSONResponse:
    return success_response(user_to_dict(customer))


@router.patch("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    user = await accounts.update_profile(customer, name=request.name, email=request.email)
    return success_response(user_to_dict(user), Message.UPDATE)


@router.patch("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    await accounts.change_password(
        customer, request.current_password or "", request.new_password or ""
    )
    return success_response({"message": "Password changed successfully"}, Message.UPDATE)


@router.delete("/delete-account")
async def delete_account(
    request: DeleteAccountRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Permanently delete the account (password confirmation required)."""
    accounts = AccountService(db)
    await accounts.delete_account(customer, request.password or "")
    return success_response(None, Message.DELETE)


# ==================== Addresses ====================


@router.get("/addresses")
async def get_addresses(
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    addresses = await accounts.get_addresses(customer.id)
    return success_response([address_to_dict(a) for a in addresses])


@router.post("/addresses", status_code=201)
async def create_address(
    request: AddressRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    address = await accounts.create_address(
        customer.id,
        request.model_dump(exclude={"is_default"}),
        is_default=request.is_default,
    )
    return success_response(address_to_dict(address), Message.CREATE, 201)


@router.put("/addresses/{address_id}")
async def update_address(
    address_id: int,
    request: AddressRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    address = await accounts.update_address(
        customer.id,
        address_id,
        request.model_dump(exclude={"is_default"}),
        is_default=request.is_default,
    )
    return success_response(address_to_dict(address), Message.UPDATE)


@router.delete("/addresses/{address_id}")
async def delete_address(
    address_id: int,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    accounts = AccountService(db)
    await accounts.delete_address(customer.id, address_id)
    return success_response(None, Message.DELETE)
