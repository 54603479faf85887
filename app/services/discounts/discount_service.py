# app/services/discounts/discount_service.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError

from app.models.discounts.discount_models import Discount, PromoCode, DiscountApplication
from app.models.enums.discount_enums import DiscountType, DiscountTargetType, DayOfWeek
from app.schemas.discounts.discount_schemas import DiscountCreate, DiscountUpdate, DiscountOut
from app.services.discounts.discount_scopes import (
    SCOPE_PAYLOAD_FIELDS,
    scope_associations,
    replace_scope,
    clear_scopes,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.datetime_utils import as_utc
from app.utils.response import PageData

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = {"title", "type", "value", "target_type", "order_types", "days_of_week", "is_active"}


# ---------------- VALIDATION ----------------
def normalize_days_of_week(days: Iterable[int | str]) -> list[str]:
    normalized: list[str] = []

    for day in days:
        if isinstance(day, str) and day.strip().isdigit():
            day = int(day.strip())

        if isinstance(day, int):
            try:
                name = DayOfWeek.from_index(day)
            except ValueError as e:
                raise AppException(400, str(e), ErrorCode.VALIDATION_ERROR)
        else:
            try:
                name = DayOfWeek(str(day).strip().upper())
            except ValueError:
                raise AppException(400, f"Invalid day of week: {day}", ErrorCode.VALIDATION_ERROR)

        if name.value not in normalized:
            normalized.append(name.value)

    return normalized


def _validate_value(discount_type: DiscountType, value: Decimal):
    if value < 0:
        raise AppException(400, "Discount value must be non-negative", ErrorCode.DISCOUNT_INVALID_VALUE)
    if discount_type == DiscountType.PERCENTAGE and value > 100:
        raise AppException(400, "Percentage discount cannot exceed 100", ErrorCode.DISCOUNT_INVALID_VALUE)


def _validate_date_range(start_date: datetime | None, end_date: datetime | None):
    if start_date and end_date and start_date >= end_date:
        raise AppException(400, "Start date must be before end date", ErrorCode.DISCOUNT_INVALID_RANGE)


async def _assert_code_available(
    db: AsyncSession,
    code: str,
    exclude_id: int | None = None,
):
    query = select(Discount.id).where(Discount.code == code)
    if exclude_id:
        query = query.where(Discount.id != exclude_id)

    if await db.scalar(query):
        raise AppException(
            400,
            "Discount with this code already exists",
            ErrorCode.DISCOUNT_CODE_EXISTS,
        )


def _map_discount(discount: Discount) -> DiscountOut:
    return DiscountOut.model_validate(discount)


async def get_discount_or_404(db: AsyncSession, discount_id: int) -> Discount:
    discount = await db.get(Discount, discount_id)
    if not discount:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return discount


async def _reload_discount(db: AsyncSession, discount_id: int) -> Discount:
    # Picks up server-side timestamps and freshly replaced scope rows
    result = await db.execute(
        select(Discount)
        .where(Discount.id == discount_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ---------------- CREATE ----------------
async def create_discount(db: AsyncSession, payload: DiscountCreate, user) -> DiscountOut:
    _validate_value(payload.type, payload.value)

    start_date = as_utc(payload.start_date)
    end_date = as_utc(payload.end_date)
    _validate_date_range(start_date, end_date)

    if payload.code:
        await _assert_code_available(db, payload.code)

    data = payload.model_dump(exclude=set(SCOPE_PAYLOAD_FIELDS))
    data.update(
        start_date=start_date,
        end_date=end_date,
        order_types=[t.value for t in payload.order_types],
        days_of_week=normalize_days_of_week(payload.days_of_week),
    )

    try:
        discount = Discount(**data, current_uses=0)
        db.add(discount)
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(
            400,
            "Discount with this code already exists",
            ErrorCode.DISCOUNT_CODE_EXISTS,
        )

    for association in scope_associations():
        target_ids = getattr(payload, association.payload_field)
        if target_ids:
            await replace_scope(db, discount.id, association, target_ids)

    await emit_user_activity(
        db,
        user,
        ActivityCode.CREATE_DISCOUNT,
        target_name=discount.title,
        target_type=discount.target_type.value,
    )

    await db.flush()
    discount = await _reload_discount(db, discount.id)
    result = _map_discount(discount)
    await db.commit()

    logger.info("Discount created", extra={"discount_id": result.id})
    return result


# ---------------- GET ----------------
async def get_discount(db: AsyncSession, discount_id: int) -> DiscountOut:
    discount = await get_discount_or_404(db, discount_id)
    return _map_discount(discount)


async def get_discount_by_code(db: AsyncSession, code: str) -> DiscountOut:
    discount = await db.scalar(select(Discount).where(Discount.code == code))
    if not discount:
        raise AppException(404, f"Discount with code {code} not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return _map_discount(discount)


# ---------------- LIST ----------------
async def list_discounts(
    *,
    db: AsyncSession,
    target_type: DiscountTargetType | None = None,
    discount_type: DiscountType | None = None,
    is_active: bool | None = None,
    has_code: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> PageData[DiscountOut]:
    query = select(Discount)

    if target_type:
        query = query.where(Discount.target_type == target_type)
    if discount_type:
        query = query.where(Discount.type == discount_type)
    if is_active is not None:
        query = query.where(Discount.is_active.is_(is_active))
    if has_code is not None:
        query = query.where(Discount.code.isnot(None) if has_code else Discount.code.is_(None))

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    result = await db.execute(
        query.order_by(Discount.created_at.desc(), Discount.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return PageData[DiscountOut](
        total=total or 0,
        page=page,
        page_size=page_size,
        items=[_map_discount(d) for d in result.scalars().all()],
    )


# ---------------- UPDATE ----------------
async def update_discount(
    db: AsyncSession,
    discount_id: int,
    payload: DiscountUpdate,
    user,
) -> DiscountOut:
    discount = await get_discount_or_404(db, discount_id)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    scope_updates = {field: data.pop(field) for field in SCOPE_PAYLOAD_FIELDS if field in data}

    for field in NON_NULLABLE_FIELDS & data.keys():
        if data[field] is None:
            raise AppException(400, f"{field} cannot be null", ErrorCode.VALIDATION_ERROR)

    if "start_date" in data:
        data["start_date"] = as_utc(data["start_date"])
    if "end_date" in data:
        data["end_date"] = as_utc(data["end_date"])

    _validate_date_range(
        data.get("start_date", as_utc(discount.start_date)),
        data.get("end_date", as_utc(discount.end_date)),
    )

    if "type" in data or "value" in data:
        _validate_value(
            data.get("type", discount.type),
            data.get("value", discount.value),
        )

    if "max_uses" in data and data["max_uses"] is not None and data["max_uses"] < discount.current_uses:
        raise AppException(
            400,
            "Max uses cannot be lower than current uses",
            ErrorCode.DISCOUNT_INVALID_VALUE,
        )

    if data.get("code") and data["code"] != discount.code:
        await _assert_code_available(db, data["code"], exclude_id=discount.id)

    if "order_types" in data:
        data["order_types"] = [t.value for t in data["order_types"]]
    if "days_of_week" in data:
        data["days_of_week"] = normalize_days_of_week(data["days_of_week"])

    for field, value in data.items():
        setattr(discount, field, value)

    for association in scope_associations():
        if association.payload_field in scope_updates:
            await replace_scope(
                db,
                discount.id,
                association,
                scope_updates[association.payload_field] or [],
            )

    await emit_user_activity(
        db,
        user,
        ActivityCode.UPDATE_DISCOUNT,
        target_name=discount.title,
        changes=", ".join([*data.keys(), *scope_updates.keys()]),
    )

    await db.flush()
    discount = await _reload_discount(db, discount.id)
    result = _map_discount(discount)
    await db.commit()

    logger.info("Discount updated", extra={"discount_id": discount_id})
    return result


# ---------------- DELETE ----------------
async def delete_discount(
    db: AsyncSession,
    discount_id: int,
    user,
) -> DiscountOut:
    discount = await get_discount_or_404(db, discount_id)
    result = _map_discount(discount)

    await clear_scopes(db, discount_id)
    await db.execute(delete(DiscountApplication).where(DiscountApplication.discount_id == discount_id))
    await db.execute(delete(PromoCode).where(PromoCode.discount_id == discount_id))
    await db.execute(delete(Discount).where(Discount.id == discount_id))

    await emit_user_activity(
        db,
        user,
        ActivityCode.DELETE_DISCOUNT,
        target_name=result.title,
    )

    await db.commit()

    logger.info("Discount deleted", extra={"discount_id": discount_id})
    return result
