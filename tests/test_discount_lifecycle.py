from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.models.discounts.discount_models import Discount
from app.models.support.activity_models import UserActivity
from app.services.discounts.discount_lifecycle_service import auto_expire_discounts

NOW = datetime(2024, 6, 1, 0, 10, tzinfo=timezone.utc)


async def test_expired_discounts_are_deactivated(db, make_discount):
    expired = await make_discount(title="Spring", end_date=NOW - timedelta(days=1))
    running = await make_discount(title="Summer", end_date=NOW + timedelta(days=30))
    open_ended = await make_discount(title="Always")
    expired_id, running_id, open_ended_id = expired.id, running.id, open_ended.id

    assert await auto_expire_discounts(db, now=NOW) == 1

    result = await db.execute(
        select(Discount.id, Discount.is_active).order_by(Discount.id)
    )
    assert dict(result.all()) == {expired_id: False, running_id: True, open_ended_id: True}

    activity = await db.scalar(select(UserActivity))
    assert activity.username_snapshot == "system"
    assert activity.message == "System (system) expired discount Spring: Expired automatically on 2024-06-01"


async def test_expiry_is_idempotent(db, make_discount):
    await make_discount(end_date=NOW - timedelta(days=1))

    assert await auto_expire_discounts(db, now=NOW) == 1
    assert await auto_expire_discounts(db, now=NOW) == 0
