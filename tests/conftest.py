import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import storefront.models  # noqa: F401
from storefront.core.database import Base, get_db, utcnow
from storefront.core.security import create_access_token, hash_password
from storefront.main import app
from storefront.models import (
    Brand,
    Category,
    Color,
    Material,
    Product,
    SellerStatus,
    Size,
    Store,
    Tag,
    User,
    UserRole,
)

API = "/api/v1"
PASSWORD = "secret123"


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


SHIPPING = {
    "name": "Asha Rao",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zipCode": "560001",
    "phone": "9876543210",
}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _user(name: str, email: str, role: UserRole, **kwargs) -> User:
    return User(
        name=name,
        email=email,
        hashed_password=hash_password(PASSWORD),
        role=role,
        **kwargs,
    )


def _product(store: Store, name: str, price: str, stock: int, **kwargs) -> Product:
    return Product(
        store_id=store.id,
        name=name,
        slug=name.lower().replace(" ", "-"),
        price=Decimal(price),
        stock=stock,
        images=[f"https://cdn.example.com/{name.lower().replace(' ', '-')}.jpg"],
        purchases=0,
        popularity_score=0,
        average_rating=0.0,
        review_count=0,
        **kwargs,
    )


@pytest.fixture
async def shop(session_factory):
    """
    Seeded marketplace.

    One approved seller with a store and three products (one inactive),
    a pending seller without a store, an admin and two customers.
    """
    async with session_factory() as session:
        admin = _user("Admin", "admin@example.com", UserRole.ADMIN)
        seller = _user(
            "Sam Seller",
            "seller@example.com",
            UserRole.SELLER,
            seller_status=SellerStatus.APPROVED,
            approved_at=utcnow(),
        )
        pending_seller = _user(
            "Pat Pending",
            "pending@example.com",
            UserRole.SELLER,
            seller_status=SellerStatus.PENDING,
        )
        customer = _user("Asha Rao", "asha@example.com", UserRole.CUSTOMER)
        other_customer = _user("Ben Iyer", "ben@example.com", UserRole.CUSTOMER)
        session.add_all([admin, seller, pending_seller, customer, other_customer])
        await session.flush()

        store = Store(
            user_id=seller.id,
            store_name="Acme Outfitters",
            slug="acme-outfitters",
            is_active=True,
        )
        shirts = Category(name="Shirts", description="Tops and tees", is_active=True)
        shoes = Category(name="Shoes", is_active=True)
        acme = Brand(name="Acme", is_active=True)
        medium = Size(name="M", type="clothing", is_active=True)
        red = Color(name="Red", hex_code="#FF0000", is_active=True)
        blue = Color(name="Blue", hex_code="#0000FF", is_active=True)
        cotton = Material(name="Cotton", is_active=True)
        summer = Tag(name="summer", type="season", is_active=True)
        session.add_all([store, shirts, shoes, acme, medium, red, blue, cotton, summer])
        await session.flush()

        tee = _product(
            store,
            "Classic Tee",
            "499.00",
            10,
            category_id=shirts.id,
            brand_id=acme.id,
            size_id=medium.id,
            color_id=red.id,
            material_id=cotton.id,
            is_active=True,
        )
        tee.tags = [summer]
        hoodie = _product(
            store, "Warm Hoodie", "1299.50", 3,
            category_id=shirts.id, brand_id=acme.id, is_active=True,
        )
        jacket = _product(
            store, "Old Jacket", "2500.00", 5,
            category_id=shirts.id, brand_id=acme.id, is_active=False,
        )
        session.add_all([tee, hoodie, jacket])
        await session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            seller_id=seller.id,
            pending_seller_id=pending_seller.id,
            customer_id=customer.id,
            other_customer_id=other_customer.id,
            store_id=store.id,
            category_id=shirts.id,
            empty_category_id=shoes.id,
            brand_id=acme.id,
            size_id=medium.id,
            color_id=red.id,
            blue_id=blue.id,
            material_id=cotton.id,
            tag_id=summer.id,
            tee_id=tee.id,
            hoodie_id=hoodie.id,
            jacket_id=jacket.id,
            admin_token=create_access_token(admin.id, UserRole.ADMIN.value),
            seller_token=create_access_token(seller.id, UserRole.SELLER.value),
            pending_seller_token=create_access_token(pending_seller.id, UserRole.SELLER.value),
            customer_token=create_access_token(customer.id, UserRole.CUSTOMER.value),
            other_customer_token=create_access_token(other_customer.id, UserRole.CUSTOMER.value),
        )


@pytest.fixture
def set_stock(session_factory):
    """Change a product's stock outside of any request."""

    async def _set_stock(product_id: int, stock: int) -> None:
        async with session_factory() as session:
            await session.execute(
                update(Product).where(Product.id == product_id).values(stock=stock)
            )
            await session.commit()

    return _set_stock


@pytest.fixture
def get_product(session_factory):
    """Read a product row directly."""

    async def _get_product(product_id: int) -> Product | None:
        async with session_factory() as session:
            return await session.get(Product, product_id)

    return _get_product
