# app/services/discounts/discount_application_service.py

import logging

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.discounts.discount_models import Discount, PromoCode, DiscountApplication
from app.models.orders.order_models import Order, OrderItem
from app.models.enums.discount_enums import DiscountTargetType
from app.schemas.discounts.discount_schemas import ApplyDiscountOut
from app.schemas.orders.order_schemas import OrderOut
from app.services.discounts.discount_service import get_discount_or_404
from app.services.discounts.discount_eligibility import check_eligibility
from app.services.discounts.discount_finder import matches_order_type
from app.services.discounts.discount_calculator import (
    ITEM_SCOPED_TARGETS,
    scoped_line_amounts,
    calculate_discount_amount,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_user_activity
from app.utils.decimal_utils import ZERO, to_decimal

logger = logging.getLogger(__name__)


# ---------------- CONDITIONAL WRITES ----------------
def _consume_usage_stmt(*, discount_id: int):
    """Increment current_uses only while the cap still allows it."""
    return (
        update(Discount)
        .where(
            Discount.id == discount_id,
            or_(
                Discount.max_uses.is_(None),
                Discount.current_uses < Discount.max_uses,
            ),
        )
        .values(current_uses=Discount.current_uses + 1)
        .returning(Discount.id, Discount.current_uses)
    )


def _redeem_promo_code_stmt(*, promo_code_id: int):
    return (
        update(PromoCode)
        .where(
            PromoCode.id == promo_code_id,
            PromoCode.used.is_(False),
        )
        .values(used=True)
        .returning(PromoCode.id)
    )


def _discount_order_stmt(*, order_id: int, amount):
    return (
        update(Order)
        .where(Order.id == order_id)
        .values(
            total_amount=Order.total_amount - amount,
            discount_amount=Order.discount_amount + amount,
            has_discount=True,
        )
    )


def _describe(discount: Discount, scoped_count: int) -> str:
    if discount.target_type in ITEM_SCOPED_TARGETS:
        return f'Discount "{discount.title}" applied to {scoped_count} item(s)'
    return f'Discount "{discount.title}" applied to the whole order'


async def _load_order(db: AsyncSession, order_id: int) -> Order | None:
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _reject(db: AsyncSession, status_code: int, message: str, error_code: ErrorCode):
    await db.rollback()
    raise AppException(status_code, message, error_code)


# ---------------- APPLY ----------------
async def apply_discount_to_order(
    db: AsyncSession,
    *,
    order_id: int,
    discount_id: int,
    customer_id: int | None = None,
    user,
) -> ApplyDiscountOut:
    order = await _load_order(db, order_id)
    if not order:
        raise AppException(404, "Order not found", ErrorCode.ORDER_NOT_FOUND)

    discount = await get_discount_or_404(db, discount_id)

    order_amount = to_decimal(order.total_amount)
    eligibility = await check_eligibility(
        db,
        discount,
        amount=order_amount,
        customer_id=customer_id,
    )
    if not eligibility.is_valid:
        raise AppException(400, eligibility.message, ErrorCode.DISCOUNT_NOT_ELIGIBLE)

    if not matches_order_type(discount, order.order_type):
        raise AppException(
            400,
            "Discount is not available for this order type",
            ErrorCode.DISCOUNT_NOT_APPLICABLE,
        )

    if (
        discount.target_type == DiscountTargetType.RESTAURANT
        and order.restaurant_id not in discount.restaurant_ids
    ):
        raise AppException(
            400,
            "Discount is not available for this restaurant",
            ErrorCode.DISCOUNT_NOT_APPLICABLE,
        )

    scoped = scoped_line_amounts(discount, order.items)
    if discount.target_type in ITEM_SCOPED_TARGETS and not scoped:
        raise AppException(
            400,
            "Discount does not apply to any item in this order",
            ErrorCode.DISCOUNT_NOT_APPLICABLE,
        )

    amount = calculate_discount_amount(discount, order_amount, scoped)
    if amount <= ZERO:
        raise AppException(
            400,
            "Discount amount must be greater than 0",
            ErrorCode.DISCOUNT_NOT_APPLICABLE,
        )

    description = _describe(discount, len(scoped))

    # ---- single transaction from here on ----
    try:
        consumed = (await db.execute(_consume_usage_stmt(discount_id=discount.id))).first()
        if not consumed:
            await _reject(db, 400, "Discount limit reached", ErrorCode.DISCOUNT_USAGE_LIMIT_REACHED)

        if discount.code and customer_id is not None:
            promo_code_id = await db.scalar(
                select(PromoCode.id)
                .where(
                    PromoCode.discount_id == discount.id,
                    PromoCode.customer_id == customer_id,
                    PromoCode.used.is_(False),
                )
                .order_by(PromoCode.id)
                .limit(1)
            )
            redeemed = None
            if promo_code_id is not None:
                redeemed = (await db.execute(_redeem_promo_code_stmt(promo_code_id=promo_code_id))).first()
            if not redeemed:
                await _reject(db, 400, "Invalid or used promo code", ErrorCode.PROMO_CODE_INVALID)

        await db.execute(_discount_order_stmt(order_id=order.id, amount=amount))

        db.add(
            DiscountApplication(
                discount_id=discount.id,
                order_id=order.id,
                amount=amount,
                description=description,
            )
        )

        await emit_user_activity(
            db,
            user,
            ActivityCode.APPLY_DISCOUNT,
            target_name=discount.title,
            amount=amount,
            order_id=order.id,
        )

        await db.flush()

        order = await _load_order(db, order.id)
        order_out = OrderOut.model_validate(order)

        await db.commit()
    except AppException:
        raise
    except Exception:
        await db.rollback()
        logger.exception(
            "Discount application failed",
            extra={"discount_id": discount_id, "order_id": order_id},
        )
        raise

    logger.info(
        "Discount applied",
        extra={"discount_id": discount_id, "order_id": order_id, "amount": str(amount)},
    )

    return ApplyDiscountOut(
        discount_amount=amount,
        description=description,
        new_total=order_out.total_amount,
        order=order_out,
    )
