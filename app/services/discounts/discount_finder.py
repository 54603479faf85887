# app/services/discounts/discount_finder.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.catalog.catalog_models import Restaurant, Product
from app.models.discounts.discount_models import (
    Discount,
    RestaurantDiscount,
    CategoryDiscount,
    ProductDiscount,
)
from app.models.enums.discount_enums import DiscountTargetType
from app.models.enums.order_type import OrderType
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.services.discounts.discount_service import get_discount_or_404
from app.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


# ---------------- FILTERS ----------------
def _time_active(now: datetime):
    """Both bounds are optional and inclusive."""
    return (
        or_(Discount.start_date.is_(None), Discount.start_date <= now),
        or_(Discount.end_date.is_(None), Discount.end_date >= now),
    )


def _available(now: datetime):
    return (Discount.is_active.is_(True), *_time_active(now))


def matches_order_type(discount: Discount, order_type: OrderType) -> bool:
    return OrderType(order_type).value in (discount.order_types or [])


def _dedupe(*groups: Sequence[Discount]) -> list[Discount]:
    seen: dict[int, Discount] = {}
    for group in groups:
        for discount in group:
            seen.setdefault(discount.id, discount)
    return list(seen.values())


async def _fetch(db: AsyncSession, query) -> list[Discount]:
    result = await db.execute(query.order_by(Discount.id))
    return list(result.scalars().all())


# ---------------- SCOPE QUERIES ----------------
def _product_scoped(product_ids: Sequence[int]):
    return Discount.id.in_(
        select(ProductDiscount.discount_id).where(ProductDiscount.product_id.in_(product_ids))
    )


def _category_via_products(product_ids: Sequence[int]):
    return Discount.id.in_(
        select(CategoryDiscount.discount_id)
        .join(Product, Product.category_id == CategoryDiscount.category_id)
        .where(Product.id.in_(product_ids))
    )


def _category_scoped(category_ids: Sequence[int]):
    return Discount.id.in_(
        select(CategoryDiscount.discount_id).where(CategoryDiscount.category_id.in_(category_ids))
    )


def _restaurant_scoped(restaurant_id: int):
    return Discount.id.in_(
        select(RestaurantDiscount.discount_id).where(RestaurantDiscount.restaurant_id == restaurant_id)
    )


def _products_query(product_ids: Sequence[int]):
    return select(Discount).where(
        or_(
            (Discount.target_type == DiscountTargetType.PRODUCT) & _product_scoped(product_ids),
            (Discount.target_type == DiscountTargetType.CATEGORY) & _category_via_products(product_ids),
        )
    )


def _categories_query(category_ids: Sequence[int]):
    return select(Discount).where(
        Discount.target_type == DiscountTargetType.CATEGORY,
        _category_scoped(category_ids),
    )


# ---------------- ORDER CONTEXT ----------------
async def find_discounts_for_order(
    db: AsyncSession,
    *,
    order_type: OrderType,
    product_ids: Sequence[int] = (),
    category_ids: Sequence[int] = (),
    restaurant_id: int | None = None,
    now: datetime | None = None,
) -> list[Discount]:
    now = now or utcnow()
    available = _available(now)

    by_product: list[Discount] = []
    by_category: list[Discount] = []
    by_restaurant: list[Discount] = []

    if product_ids:
        by_product = await _fetch(db, _products_query(product_ids).where(*available))

    if category_ids:
        by_category = await _fetch(db, _categories_query(category_ids).where(*available))

    if restaurant_id is not None:
        by_restaurant = await _fetch(
            db,
            select(Discount).where(
                Discount.target_type == DiscountTargetType.RESTAURANT,
                _restaurant_scoped(restaurant_id),
                *available,
            ),
        )

    for_everyone = await _fetch(
        db,
        select(Discount).where(Discount.target_type == DiscountTargetType.ALL, *available),
    )

    candidates = _dedupe(by_product, by_category, by_restaurant, for_everyone)
    matched = [d for d in candidates if matches_order_type(d, order_type)]

    logger.debug(
        "Discounts resolved for order context",
        extra={"candidates": len(candidates), "matched": len(matched)},
    )
    return matched


# ---------------- LOOKUPS ----------------
async def find_active_discounts(db: AsyncSession, now: datetime | None = None) -> list[Discount]:
    return await _fetch(db, select(Discount).where(*_available(now or utcnow())))


async def find_discounts_by_restaurant(db: AsyncSession, restaurant_id: int) -> list[Discount]:
    if not await db.get(Restaurant, restaurant_id):
        raise AppException(404, "Restaurant not found", ErrorCode.RESTAURANT_NOT_FOUND)

    # Coded discounts are only reachable through promo codes
    return await _fetch(
        db,
        select(Discount).where(
            Discount.target_type == DiscountTargetType.RESTAURANT,
            _restaurant_scoped(restaurant_id),
            Discount.is_active.is_(True),
            Discount.code.is_(None),
        ),
    )


async def find_discounts_for_products(db: AsyncSession, product_ids: Sequence[int]) -> list[Discount]:
    if not product_ids:
        raise AppException(400, "Product IDs array is empty", ErrorCode.VALIDATION_ERROR)

    return await _fetch(
        db,
        _products_query(product_ids).where(Discount.is_active.is_(True)),
    )


async def find_discounts_for_categories(db: AsyncSession, category_ids: Sequence[int]) -> list[Discount]:
    if not category_ids:
        raise AppException(400, "Category IDs array is empty", ErrorCode.VALIDATION_ERROR)

    return await _fetch(
        db,
        _categories_query(category_ids).where(Discount.is_active.is_(True)),
    )


async def find_discounts_for_order_type(
    db: AsyncSession,
    order_type: OrderType,
    restaurant_id: int | None = None,
    now: datetime | None = None,
) -> list[Discount]:
    query = select(Discount).where(*_available(now or utcnow()))

    if restaurant_id is not None:
        query = query.where(
            or_(
                Discount.target_type == DiscountTargetType.ALL,
                (Discount.target_type == DiscountTargetType.RESTAURANT) & _restaurant_scoped(restaurant_id),
            )
        )

    discounts = await _fetch(db, query)
    return [d for d in discounts if matches_order_type(d, order_type)]


async def check_min_order_amount(db: AsyncSession, discount_id: int, amount: Decimal) -> bool:
    discount = await get_discount_or_404(db, discount_id)
    if discount.min_order_amount is None:
        return True
    return Decimal(amount) >= Decimal(discount.min_order_amount)
