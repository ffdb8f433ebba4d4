"""
Auth API Endpoints.

Registration and login for customers and sellers.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.schemas import CamelModel
from storefront.api.v1.serializers import user_to_dict
from storefront.core.database import get_db
from storefront.core.responses import Message, success_response
from storefront.modules.account import AccountService

router = APIRouter()


# ==================== Schemas ====================


class RegisterRequest(CamelModel):
    """New account."""

    name: str
    email: EmailStr
    password: str
    role: str = "customer"


class LoginRequest(CamelModel):
    """Credentials."""

    email: EmailStr
    password: str


# ==================== Endpoints ====================


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """Create a customer or seller account."""
    accounts = AccountService(db)
    user = await accounts.register(
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role,
    )
    return success_response(user_to_dict(user), Message.CREATE, 201)


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ORJSONResponse:
    """
    Exchange credentials for an access token.

    The token goes in the Authorization header as "Bearer <token>".
    """
    accounts = AccountService(db)
    user, token = await accounts.authenticate(request.email, request.password)
    return success_response({**user_to_dict(user), "token": token})
