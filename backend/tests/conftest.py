"""
Pytest configuration and shared fixtures for Storefront tests.

Provides an in-memory SQLite session, an httpx client bound to the FastAPI app
(with get_db overridden to that session), and small factories for users,
products and cart lines.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only-0123456789"
# Minimum bcrypt cost keeps user factories fast
settings.bcrypt_rounds = 4


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    import db_models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client against the FastAPI app with the test DB session injected.
    """
    from main import app
    from middleware.rate_limit import _limiter

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    _limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Test Data Factories ──────────────────────────────────────────────


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: create and commit a user with a real password hash."""
    from db_models import User
    from middleware.auth import hash_password

    counter = {"n": 0}

    async def _make(email: str | None = None, role: str = "USER", password: str = "secret123", name: str = "Test User"):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            name=name,
            password_hash=hash_password(password),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db_session: AsyncSession):
    """Factory: create and commit a product."""
    from db_models import Product

    async def _make(name: str = "Widget", price: str = "10.00", stock: int = 5, description: str = "A product"):
        product = Product(name=name, description=description, price=Decimal(price), stock=stock)
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def add_line(db_session: AsyncSession):
    """Factory: put a cart line straight into the DB (bypasses add-to-cart checks)."""
    from db_models import CartItem

    async def _add(user, product, quantity: int):
        item = CartItem(user_id=user.id, product_id=product.id, quantity=quantity)
        db_session.add(item)
        await db_session.commit()
        return item

    return _add


@pytest.fixture
def stock_of(db_session: AsyncSession):
    """Read a product's stock straight from the table (ignores stale ORM state)."""
    from db_models import Product

    async def _stock(product_id: int) -> int:
        return await db_session.scalar(select(Product.stock).where(Product.id == product_id))

    return _stock


@pytest.fixture
def cart_size(db_session: AsyncSession):
    from sqlalchemy import func
    from db_models import CartItem

    async def _size(user_id: int) -> int:
        return await db_session.scalar(select(func.count(CartItem.id)).where(CartItem.user_id == user_id))

    return _size


@pytest.fixture
async def customer(make_user):
    return await make_user(email="customer@example.com", name="Casey Customer")


@pytest.fixture
async def admin(make_user):
    return await make_user(email="admin@example.com", role="ADMIN", name="Ada Admin")


def auth_headers(user) -> dict:
    """Authorization header with a valid JWT for the given user."""
    from middleware.auth import issue_access_token

    token = issue_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
