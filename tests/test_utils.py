from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.constants.activity_codes import ActivityCode
from app.models.enums.discount_enums import DayOfWeek
from app.utils.activity_helpers import render_activity
from app.utils.datetime_utils import as_utc, business_isoweekday
from app.utils.decimal_utils import to_decimal, percentage_of


def test_to_decimal_rounds_half_up():
    assert to_decimal("2.345") == Decimal("2.35")
    assert to_decimal(None) == Decimal("0.00")
    assert to_decimal(10) == Decimal("10.00")


def test_percentage_of():
    assert percentage_of(Decimal("1000"), Decimal("10")) == Decimal("100.00")
    assert percentage_of("33.33", "50") == Decimal("16.67")


def test_as_utc_handles_naive_and_aware():
    naive = datetime(2024, 1, 1, 10, 0)
    aware = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert as_utc(naive) == aware
    assert as_utc(None) is None


def test_business_weekday_uses_iso_numbering():
    assert business_isoweekday(datetime(2024, 1, 1, 12, tzinfo=timezone.utc)) == 1
    assert business_isoweekday(datetime(2024, 1, 7, 12, tzinfo=timezone.utc)) == 7


def test_day_of_week_index_is_sunday_based():
    assert DayOfWeek.from_index(0) == DayOfWeek.SUNDAY
    assert DayOfWeek.from_index(6) == DayOfWeek.SATURDAY
    with pytest.raises(ValueError):
        DayOfWeek.from_index(7)


def test_render_activity_requires_all_context():
    message = render_activity(
        ActivityCode.DELETE_DISCOUNT,
        actor_role="Admin",
        actor_email="a@example.com",
        target_name="Lunch",
    )

    assert message == "Admin (a@example.com) deleted discount Lunch"
    with pytest.raises(ValueError):
        render_activity(ActivityCode.DELETE_DISCOUNT, actor_role="Admin")
