from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- DISCOUNTS ----------------
    ActivityCode.CREATE_DISCOUNT:
        "{actor_role} ({actor_email}) created discount {target_name} ({target_type})",

    ActivityCode.UPDATE_DISCOUNT:
        "{actor_role} ({actor_email}) updated discount {target_name}: {changes}",

    ActivityCode.DELETE_DISCOUNT:
        "{actor_role} ({actor_email}) deleted discount {target_name}",

    ActivityCode.EXPIRE_DISCOUNT:
        "{actor_role} ({actor_email}) expired discount {target_name}: {changes}",

    # ---------------- ORDERS ----------------
    ActivityCode.APPLY_DISCOUNT:
        "{actor_role} ({actor_email}) applied discount {target_name} "
        "({amount}) on order #{order_id}",

    # ---------------- PROMO CODES ----------------
    ActivityCode.GENERATE_PROMO_CODE:
        "{actor_role} ({actor_email}) issued promo code {promo_code} "
        "for discount {target_name} to customer #{customer_id}",
}
