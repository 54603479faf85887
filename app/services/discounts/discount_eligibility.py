# app/services/discounts/discount_eligibility.py

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discounts.discount_models import Discount, PromoCode
from app.models.enums.discount_enums import DayOfWeek
from app.schemas.discounts.discount_schemas import ValidationResultOut
from app.services.discounts.discount_service import get_discount_or_404
from app.utils.datetime_utils import utcnow, as_utc, business_isoweekday


@dataclass(frozen=True)
class RuleOutcome:
    name: str
    passed: bool
    message: str


@dataclass(frozen=True)
class EligibilityResult:
    rules: list[RuleOutcome] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(rule.passed for rule in self.rules)

    @property
    def message(self) -> str | None:
        for rule in self.rules:
            if not rule.passed:
                return rule.message
        return None

    @property
    def failed_rules(self) -> list[str]:
        return [rule.name for rule in self.rules if not rule.passed]


def _date_window_rule(discount: Discount, now: datetime) -> RuleOutcome:
    start_date = as_utc(discount.start_date)
    end_date = as_utc(discount.end_date)

    if start_date and now < start_date:
        return RuleOutcome("date_window", False, "Discount is not yet available")
    if end_date and now > end_date:
        return RuleOutcome("date_window", False, "Discount has expired")
    return RuleOutcome("date_window", True, "")


def _min_amount_rule(discount: Discount, amount: Decimal | None) -> RuleOutcome:
    message = f"Minimum order amount is {discount.min_order_amount}"

    # No amount supplied means there is nothing to compare against yet
    if discount.min_order_amount is None or amount is None:
        return RuleOutcome("min_order_amount", True, message)

    return RuleOutcome(
        "min_order_amount",
        Decimal(amount) >= Decimal(discount.min_order_amount),
        message,
    )


def _day_of_week_rule(discount: Discount, now: datetime) -> RuleOutcome:
    days = discount.days_of_week or []
    if not days:
        return RuleOutcome("day_of_week", True, "")

    allowed = {DayOfWeek(day).isoweekday for day in days}
    return RuleOutcome(
        "day_of_week",
        business_isoweekday(now) in allowed,
        "Discount is not valid for today",
    )


def evaluate_eligibility(
    discount: Discount,
    *,
    now: datetime,
    amount: Decimal | None = None,
    has_valid_promo_code: bool = False,
) -> EligibilityResult:
    """
    Run every rule in precedence order.

    The verdict is the AND of all rules; the message is the one of the
    first failing rule.
    """
    now = as_utc(now)

    return EligibilityResult(
        rules=[
            RuleOutcome("is_active", bool(discount.is_active), "Discount is not active"),
            _date_window_rule(discount, now),
            _min_amount_rule(discount, amount),
            RuleOutcome(
                "usage_cap",
                discount.max_uses is None or discount.current_uses < discount.max_uses,
                "Discount limit reached",
            ),
            _day_of_week_rule(discount, now),
            RuleOutcome(
                "promo_code",
                not discount.code or has_valid_promo_code,
                "Invalid or used promo code",
            ),
        ]
    )


async def has_unused_promo_code(db: AsyncSession, discount_id: int, customer_id: int | None) -> bool:
    if customer_id is None:
        return False

    promo_id = await db.scalar(
        select(PromoCode.id).where(
            PromoCode.discount_id == discount_id,
            PromoCode.customer_id == customer_id,
            PromoCode.used.is_(False),
        )
    )
    return promo_id is not None


async def check_eligibility(
    db: AsyncSession,
    discount: Discount,
    *,
    amount: Decimal | None = None,
    customer_id: int | None = None,
    now: datetime | None = None,
) -> EligibilityResult:
    has_promo = False
    if discount.code:
        has_promo = await has_unused_promo_code(db, discount.id, customer_id)

    return evaluate_eligibility(
        discount,
        now=now or utcnow(),
        amount=amount,
        has_valid_promo_code=has_promo,
    )


async def validate_discount(
    db: AsyncSession,
    discount_id: int,
    amount: Decimal | None = None,
    customer_id: int | None = None,
) -> ValidationResultOut:
    discount = await get_discount_or_404(db, discount_id)
    result = await check_eligibility(db, discount, amount=amount, customer_id=customer_id)
    return ValidationResultOut(is_valid=result.is_valid, message=result.message)
