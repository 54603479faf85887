from enum import Enum


class DiscountType(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class DiscountTargetType(str, Enum):
    ALL = "ALL"
    RESTAURANT = "RESTAURANT"
    CATEGORY = "CATEGORY"
    PRODUCT = "PRODUCT"


class DayOfWeek(str, Enum):
    SUNDAY = "SUNDAY"
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"

    @property
    def isoweekday(self) -> int:
        return ISO_WEEKDAYS[self]

    @classmethod
    def from_index(cls, index: int) -> "DayOfWeek":
        """0=Sunday ... 6=Saturday, the convention POS terminals send."""
        if not 0 <= index <= 6:
            raise ValueError(f"Day of week index must be between 0 and 6, got {index}")
        return list(cls)[index]


ISO_WEEKDAYS = {
    DayOfWeek.MONDAY: 1,
    DayOfWeek.TUESDAY: 2,
    DayOfWeek.WEDNESDAY: 3,
    DayOfWeek.THURSDAY: 4,
    DayOfWeek.FRIDAY: 5,
    DayOfWeek.SATURDAY: 6,
    DayOfWeek.SUNDAY: 7,
}
