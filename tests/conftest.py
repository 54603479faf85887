import os

# app.core.config validates the environment at import time
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_ACCESS_SECRET_KEY"] = "test-access-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["BUSINESS_TIMEZONE"] = "UTC"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import JWT_ACCESS_SECRET_KEY, JWT_ALGORITHM
from app.core.db import Base, get_db, enable_sqlite_foreign_keys
from app.models.catalog.catalog_models import Restaurant, Category, Product
from app.models.orders.order_models import Order, OrderItem
from app.models.discounts.discount_models import (
    Discount,
    RestaurantDiscount,
    CategoryDiscount,
    ProductDiscount,
    PromoCode,
)
from app.models.enums.discount_enums import DiscountType, DiscountTargetType
from app.models.enums.order_type import OrderType
from app.utils.get_user import CurrentUser
from main import app


# =====================================================
# DATABASE
# =====================================================
@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# =====================================================
# HTTP
# =====================================================
def make_token(role: str = "admin", username: str = "admin@example.com", user_id: int = 1, **overrides) -> str:
    claims = {
        "sub": username,
        "role": role,
        "user_id": user_id,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    claims.update(overrides)
    return jwt.encode(claims, JWT_ACCESS_SECRET_KEY, algorithm=JWT_ALGORITHM)


def auth_headers(role: str = "admin") -> dict:
    return {"Authorization": f"Bearer {make_token(role=role, username=f'{role}@example.com')}"}


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def admin_headers():
    return auth_headers("admin")


@pytest.fixture
def cashier_headers():
    return auth_headers("cashier")


@pytest.fixture
def admin_user():
    return CurrentUser(id=1, username="admin@example.com", role="admin")


@pytest.fixture
def cashier_user():
    return CurrentUser(id=2, username="cashier@example.com", role="cashier")


# =====================================================
# FACTORIES
# =====================================================
@pytest.fixture
def make_catalog(db):
    async def _make():
        restaurant = Restaurant(title="Central", address="1 Main St")
        drinks = Category(title="Drinks")
        pizza = Category(title="Pizza")
        db.add_all([restaurant, drinks, pizza])
        await db.flush()

        cola = Product(title="Cola", price=Decimal("100.00"), category_id=drinks.id)
        juice = Product(title="Juice", price=Decimal("150.00"), category_id=drinks.id)
        margherita = Product(title="Margherita", price=Decimal("500.00"), category_id=pizza.id)
        db.add_all([cola, juice, margherita])
        await db.commit()

        return {
            "restaurant": restaurant,
            "drinks": drinks,
            "pizza": pizza,
            "cola": cola,
            "juice": juice,
            "margherita": margherita,
        }

    return _make


@pytest.fixture
def make_discount(db):
    async def _make(
        *,
        restaurant_ids=(),
        category_ids=(),
        product_ids=(),
        **fields,
    ) -> Discount:
        data = {
            "title": "Discount",
            "type": DiscountType.PERCENTAGE,
            "value": Decimal("10"),
            "target_type": DiscountTargetType.ALL,
            "order_types": [t.value for t in OrderType],
            "days_of_week": [],
            "current_uses": 0,
            "is_active": True,
        }
        data.update(fields)

        discount = Discount(**data)
        db.add(discount)
        await db.flush()

        db.add_all([RestaurantDiscount(discount_id=discount.id, restaurant_id=i) for i in restaurant_ids])
        db.add_all([CategoryDiscount(discount_id=discount.id, category_id=i) for i in category_ids])
        db.add_all([ProductDiscount(discount_id=discount.id, product_id=i) for i in product_ids])
        await db.commit()

        await db.refresh(discount, ["restaurants", "categories", "products", "created_at", "updated_at"])
        return discount

    return _make


@pytest.fixture
def make_order(db):
    async def _make(*, items=(), total_amount=None, **fields) -> Order:
        """items: iterable of (product, quantity) or (product, quantity, is_refund)."""
        lines = []
        for entry in items:
            product, quantity, *rest = entry
            lines.append(
                OrderItem(
                    product_id=product.id,
                    quantity=quantity,
                    price=product.price,
                    is_refund=bool(rest and rest[0]),
                )
            )

        if total_amount is None:
            total_amount = sum(
                (Decimal(line.price) * line.quantity for line in lines if not line.is_refund),
                Decimal("0.00"),
            )

        order = Order(
            order_type=fields.pop("order_type", OrderType.DINE_IN),
            total_amount=Decimal(total_amount),
            items=lines,
            **fields,
        )
        db.add(order)
        await db.commit()
        await db.refresh(order, ["items", "created_at", "updated_at"])
        return order

    return _make


@pytest.fixture
def make_promo_code(db):
    async def _make(discount: Discount, customer_id: int, *, code: str | None = None, used: bool = False) -> PromoCode:
        promo = PromoCode(
            code=code or f"PROMO-T{discount.id:02d}{customer_id:03d}",
            customer_id=customer_id,
            discount_id=discount.id,
            used=used,
        )
        db.add(promo)
        await db.commit()
        return promo

    return _make
