# app/services/discounts/discount_calculator.py

from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discounts.discount_models import Discount
from app.models.orders.order_models import OrderItem
from app.models.enums.discount_enums import DiscountType, DiscountTargetType
from app.models.enums.order_type import OrderType
from app.schemas.discounts.discount_schemas import BestDiscountOut, DiscountOut
from app.services.discounts.discount_finder import find_discounts_for_order
from app.services.discounts.discount_eligibility import check_eligibility
from app.utils.datetime_utils import utcnow
from app.utils.decimal_utils import ZERO, to_decimal, percentage_of

ITEM_SCOPED_TARGETS = {DiscountTargetType.PRODUCT, DiscountTargetType.CATEGORY}

# FIXED discounts are preferred over PERCENTAGE ones before comparing values
TYPE_PRIORITY = {
    DiscountType.FIXED: 0,
    DiscountType.PERCENTAGE: 1,
}


def scoped_line_amounts(discount: Discount, items: Iterable[OrderItem]) -> list[Decimal]:
    """Line totals of the non-refunded items a PRODUCT or CATEGORY discount covers."""
    if discount.target_type == DiscountTargetType.PRODUCT:
        product_ids = set(discount.product_ids)
        return [
            item.line_total
            for item in items
            if not item.is_refund and item.product_id in product_ids
        ]

    if discount.target_type == DiscountTargetType.CATEGORY:
        category_ids = set(discount.category_ids)
        return [
            item.line_total
            for item in items
            if not item.is_refund
            and item.product is not None
            and item.product.category_id in category_ids
        ]

    return []


def calculate_discount_amount(
    discount: Discount,
    order_amount,
    scoped_amounts: Sequence[Decimal] = (),
) -> Decimal:
    order_amount = max(to_decimal(order_amount), ZERO)

    if discount.type == DiscountType.FIXED:
        return to_decimal(min(Decimal(discount.value), order_amount))

    base = to_decimal(sum(scoped_amounts, ZERO)) if scoped_amounts else order_amount
    amount = percentage_of(base, discount.value)
    return min(amount, base, order_amount)


def select_best_discount(
    discounts: Iterable[Discount],
    amount: Decimal | None = None,
) -> Discount | None:
    candidates = [
        d
        for d in discounts
        if amount is None
        or d.min_order_amount is None
        or Decimal(amount) >= Decimal(d.min_order_amount)
    ]
    if not candidates:
        return None

    # sorted() is stable, so equal keys keep finder order
    ranked = sorted(
        candidates,
        key=lambda d: (TYPE_PRIORITY[DiscountType(d.type)], -Decimal(d.value)),
    )
    return ranked[0]


async def get_best_discount(
    db: AsyncSession,
    *,
    order_type: OrderType,
    product_ids: Sequence[int] = (),
    category_ids: Sequence[int] = (),
    restaurant_id: int | None = None,
    amount: Decimal | None = None,
    customer_id: int | None = None,
) -> BestDiscountOut:
    discounts = await find_discounts_for_order(
        db,
        order_type=order_type,
        product_ids=product_ids,
        category_ids=category_ids,
        restaurant_id=restaurant_id,
    )

    now = utcnow()
    eligible = []
    for discount in discounts:
        result = await check_eligibility(
            db,
            discount,
            amount=amount,
            customer_id=customer_id,
            now=now,
        )
        if result.is_valid:
            eligible.append(discount)

    best = select_best_discount(eligible, amount)
    if best is None:
        return BestDiscountOut(discount=None, amount=ZERO)

    if amount is None:
        discount_amount = ZERO
    elif best.type == DiscountType.PERCENTAGE and best.target_type in ITEM_SCOPED_TARGETS:
        # The base is the covered line totals, which only the order itself knows
        discount_amount = None
    else:
        discount_amount = calculate_discount_amount(best, amount)

    return BestDiscountOut(
        discount=DiscountOut.model_validate(best),
        amount=discount_amount,
    )
