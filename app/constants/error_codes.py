from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- CATALOG ----------------
    RESTAURANT_NOT_FOUND = "RESTAURANT_NOT_FOUND"

    # ---------------- ORDERS ----------------
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"

    # ---------------- DISCOUNTS ----------------
    DISCOUNT_NOT_FOUND = "DISCOUNT_NOT_FOUND"
    DISCOUNT_CODE_EXISTS = "DISCOUNT_CODE_EXISTS"
    DISCOUNT_INVALID_VALUE = "DISCOUNT_INVALID_VALUE"
    DISCOUNT_INVALID_RANGE = "DISCOUNT_INVALID_RANGE"
    DISCOUNT_NOT_ELIGIBLE = "DISCOUNT_NOT_ELIGIBLE"
    DISCOUNT_NOT_APPLICABLE = "DISCOUNT_NOT_APPLICABLE"
    DISCOUNT_USAGE_LIMIT_REACHED = "DISCOUNT_USAGE_LIMIT_REACHED"

    # ---------------- PROMO CODES ----------------
    PROMO_CODE_INVALID = "PROMO_CODE_INVALID"
    PROMO_CODE_UNSUPPORTED = "PROMO_CODE_UNSUPPORTED"
