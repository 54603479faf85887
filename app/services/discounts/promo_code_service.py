# app/services/discounts/promo_code_service.py

import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import PROMO_CODE_PREFIX, PROMO_CODE_LENGTH
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.models.discounts.discount_models import PromoCode
from app.schemas.discounts.promo_code_schemas import GeneratedPromoCodeOut, PromoCodeOut
from app.services.discounts.discount_service import get_discount_or_404
from app.utils.activity_helpers import emit_user_activity

logger = logging.getLogger(__name__)

PROMO_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_GENERATION_ATTEMPTS = 5


def new_promo_code() -> str:
    suffix = "".join(secrets.choice(PROMO_CODE_ALPHABET) for _ in range(PROMO_CODE_LENGTH))
    return f"{PROMO_CODE_PREFIX}{suffix}"


async def _unused_code_for(db: AsyncSession, discount_id: int, customer_id: int) -> PromoCode | None:
    return await db.scalar(
        select(PromoCode)
        .where(
            PromoCode.discount_id == discount_id,
            PromoCode.customer_id == customer_id,
            PromoCode.used.is_(False),
        )
        .order_by(PromoCode.id)
        .limit(1)
    )


async def _code_taken(db: AsyncSession, code: str) -> bool:
    return await db.scalar(select(PromoCode.id).where(PromoCode.code == code)) is not None


async def generate_promo_code(
    db: AsyncSession,
    discount_id: int,
    customer_id: int,
    user,
) -> GeneratedPromoCodeOut:
    discount = await get_discount_or_404(db, discount_id)

    if not discount.code:
        raise AppException(
            400,
            "Discount does not support promo codes",
            ErrorCode.PROMO_CODE_UNSUPPORTED,
        )

    # rollback() below expires the instance
    discount_pk, discount_title = discount.id, discount.title

    existing = await _unused_code_for(db, discount_pk, customer_id)
    if existing:
        return GeneratedPromoCodeOut(code=existing.code)

    for _ in range(MAX_GENERATION_ATTEMPTS):
        code = new_promo_code()
        if await _code_taken(db, code):
            continue

        try:
            db.add(PromoCode(code=code, customer_id=customer_id, discount_id=discount_pk, used=False))

            await emit_user_activity(
                db,
                user,
                ActivityCode.GENERATE_PROMO_CODE,
                promo_code=code,
                target_name=discount_title,
                customer_id=customer_id,
            )

            await db.commit()
        except IntegrityError:
            # Lost a race on the unique code
            await db.rollback()
            continue

        logger.info(
            "Promo code generated",
            extra={"discount_id": discount_pk, "customer_id": customer_id},
        )
        return GeneratedPromoCodeOut(code=code)

    raise AppException(
        409,
        "Could not generate a unique promo code",
        ErrorCode.CONFLICT,
    )


async def list_customer_promo_codes(
    db: AsyncSession,
    customer_id: int,
    *,
    include_used: bool = False,
) -> list[PromoCodeOut]:
    query = select(PromoCode).where(PromoCode.customer_id == customer_id)
    if not include_used:
        query = query.where(PromoCode.used.is_(False))

    result = await db.execute(query.order_by(PromoCode.created_at.desc(), PromoCode.id.desc()))

    return [
        PromoCodeOut(
            id=p.id,
            code=p.code,
            customer_id=p.customer_id,
            discount_id=p.discount_id,
            discount_title=p.discount.title,
            used=p.used,
            created_at=p.created_at,
        )
        for p in result.scalars().all()
    ]
