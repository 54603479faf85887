from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- DISCOUNTS ----------------
    CREATE_DISCOUNT = "CREATE_DISCOUNT"
    UPDATE_DISCOUNT = "UPDATE_DISCOUNT"
    DELETE_DISCOUNT = "DELETE_DISCOUNT"
    EXPIRE_DISCOUNT = "EXPIRE_DISCOUNT"

    # ---------------- ORDERS ----------------
    APPLY_DISCOUNT = "APPLY_DISCOUNT"

    # ---------------- PROMO CODES ----------------
    GENERATE_PROMO_CODE = "GENERATE_PROMO_CODE"
