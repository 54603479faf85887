# app/services/discounts/discount_lifecycle_service.py

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discounts.discount_models import Discount
from app.utils.activity_helpers import emit_system_activity
from app.utils.datetime_utils import utcnow
from app.constants.activity_codes import ActivityCode

logger = logging.getLogger(__name__)


def _expire_discount_stmt(*, now: datetime):
    """
    Deactivate active discounts whose end_date has passed.
    Idempotent & safe for cron.
    """
    return (
        update(Discount)
        .where(
            Discount.is_active.is_(True),
            Discount.end_date.isnot(None),
            Discount.end_date < now,
        )
        .values(is_active=False)
        .returning(Discount.id, Discount.title)
    )


async def auto_expire_discounts(db: AsyncSession, now: datetime | None = None) -> int:
    now = now or utcnow()

    result = await db.execute(_expire_discount_stmt(now=now))
    expired = result.all()

    if not expired:
        return 0

    for d in expired:
        await emit_system_activity(
            db,
            ActivityCode.EXPIRE_DISCOUNT,
            target_name=d.title,
            changes=f"Expired automatically on {now.date()}",
        )

    await db.commit()

    logger.info("Expired discounts deactivated", extra={"count": len(expired)})
    return len(expired)
