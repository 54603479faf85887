from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.models.enums.discount_enums import DiscountType, DiscountTargetType


def discount_body(**fields) -> dict:
    body = {
        "title": "Lunch deal",
        "type": "PERCENTAGE",
        "value": "10",
    }
    body.update(fields)
    return body


# ---------------- AUTH ----------------
async def test_missing_token_is_unauthorized(client):
    response = await client.get("/discounts/active")

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["error_code"] == "UNAUTHORIZED"


async def test_expired_token_is_unauthorized(client, token_factory):
    token = token_factory(exp=datetime.now(timezone.utc) - timedelta(minutes=1))

    response = await client.get("/discounts/active", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


async def test_refresh_token_is_rejected(client, token_factory):
    token = token_factory(type="refresh")

    response = await client.get("/discounts/active", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token type"


async def test_cashier_cannot_create(client, cashier_headers):
    response = await client.post("/discounts/", json=discount_body(), headers=cashier_headers)

    assert response.status_code == 403
    assert response.json()["error_code"] == "PERMISSION_DENIED"


# ---------------- CRUD ----------------
async def test_create_read_update_delete(client, admin_headers, cashier_headers):
    created = await client.post(
        "/discounts/",
        json=discount_body(code="LUNCH", days_of_week=[1, "friday"]),
        headers=admin_headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    assert body["message"] == "Discount created successfully"
    discount_id = body["data"]["id"]
    assert body["data"]["days_of_week"] == ["MONDAY", "FRIDAY"]
    assert body["data"]["order_types"] == ["DINE_IN", "TAKEAWAY", "DELIVERY", "BANQUET"]

    fetched = await client.get(f"/discounts/{discount_id}", headers=cashier_headers)
    by_code = await client.get("/discounts/code/LUNCH", headers=cashier_headers)
    assert fetched.json()["data"]["title"] == "Lunch deal"
    assert by_code.json()["data"]["id"] == discount_id

    updated = await client.patch(
        f"/discounts/{discount_id}",
        json={"value": "25", "is_active": False},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert Decimal(updated.json()["data"]["value"]) == Decimal("25")
    assert updated.json()["data"]["is_active"] is False

    listed = await client.get("/discounts/", params={"is_active": False}, headers=admin_headers)
    assert listed.json()["data"]["total"] == 1

    deleted = await client.delete(f"/discounts/{discount_id}", headers=admin_headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/discounts/{discount_id}", headers=cashier_headers)
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "message": "Discount not found",
        "error_code": "DISCOUNT_NOT_FOUND",
        "details": None,
    }


async def test_create_with_invalid_dates(client, admin_headers):
    response = await client.post(
        "/discounts/",
        json=discount_body(start_date="2024-02-01T00:00:00Z", end_date="2024-01-01T00:00:00Z"),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Start date must be before end date"


async def test_create_with_malformed_body(client, admin_headers):
    response = await client.post("/discounts/", json={"title": "x"}, headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


# ---------------- ORDER FLOW ----------------
async def test_for_current_order_and_best(client, cashier_headers, make_catalog, make_discount):
    catalog = await make_catalog()
    percentage = await make_discount(type=DiscountType.PERCENTAGE, value=Decimal("90"))
    fixed = await make_discount(
        type=DiscountType.FIXED,
        value=Decimal("50"),
        target_type=DiscountTargetType.PRODUCT,
        product_ids=[catalog["cola"].id],
    )
    context = {"order_type": "DINE_IN", "product_ids": [catalog["cola"].id]}

    found = await client.post("/discounts/for-current-order", json=context, headers=cashier_headers)
    best = await client.post("/discounts/best", json={**context, "amount": "1000"}, headers=cashier_headers)

    assert [d["id"] for d in found.json()["data"]] == [fixed.id, percentage.id]
    assert best.json()["data"]["discount"]["id"] == fixed.id
    assert Decimal(best.json()["data"]["amount"]) == Decimal("50")


async def test_validate_and_apply(client, cashier_headers, make_discount, make_order):
    discount = await make_discount(type=DiscountType.PERCENTAGE, value=Decimal("10"))
    order = await make_order(total_amount=Decimal("1000"))

    validated = await client.post(
        f"/discounts/{discount.id}/validate",
        json={"amount": "1000"},
        headers=cashier_headers,
    )
    applied = await client.post(
        f"/discounts/{discount.id}/apply/{order.id}",
        json={},
        headers=cashier_headers,
    )

    assert validated.json()["data"] == {"is_valid": True, "message": None}
    assert applied.status_code == 200
    data = applied.json()["data"]
    assert Decimal(data["discount_amount"]) == Decimal("100")
    assert Decimal(data["new_total"]) == Decimal("900")
    assert data["order"]["has_discount"] is True


async def test_apply_usage_limit_maps_to_bad_request(client, cashier_headers, make_discount, make_order):
    discount = await make_discount(max_uses=1, current_uses=1)
    order = await make_order(total_amount=Decimal("100"))

    response = await client.post(
        f"/discounts/{discount.id}/apply/{order.id}",
        json={},
        headers=cashier_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Discount limit reached"
    assert response.json()["error_code"] == "DISCOUNT_NOT_ELIGIBLE"


async def test_check_min_amount(client, cashier_headers, make_discount):
    discount = await make_discount(min_order_amount=Decimal("500"))

    below = await client.get(
        f"/discounts/{discount.id}/check-min-amount",
        params={"amount": "499"},
        headers=cashier_headers,
    )
    above = await client.get(
        f"/discounts/{discount.id}/check-min-amount",
        params={"amount": "500"},
        headers=cashier_headers,
    )

    assert below.json()["data"] == {"is_valid": False}
    assert above.json()["data"] == {"is_valid": True}


# ---------------- PROMO CODES ----------------
async def test_generate_and_list_promo_codes(client, cashier_headers, make_discount):
    discount = await make_discount(title="Birthday", code="BDAY")

    generated = await client.post(
        f"/discounts/{discount.id}/generate-code",
        json={"customer_id": 7},
        headers=cashier_headers,
    )
    listed = await client.get("/discounts/customer/7/promocodes", headers=cashier_headers)

    code = generated.json()["data"]["code"]
    assert code.startswith("PROMO-")
    assert [(p["code"], p["discount_title"]) for p in listed.json()["data"]] == [(code, "Birthday")]


# ---------------- LOOKUPS ----------------
async def test_lookup_endpoints(client, cashier_headers, make_catalog, make_discount):
    catalog = await make_catalog()
    restaurant = await make_discount(
        target_type=DiscountTargetType.RESTAURANT,
        restaurant_ids=[catalog["restaurant"].id],
        order_types=["DELIVERY"],
    )
    drinks = await make_discount(
        target_type=DiscountTargetType.CATEGORY,
        category_ids=[catalog["drinks"].id],
    )

    by_restaurant = await client.get(f"/discounts/restaurant/{catalog['restaurant'].id}", headers=cashier_headers)
    by_products = await client.post(
        "/discounts/for-products",
        json={"product_ids": [catalog["cola"].id]},
        headers=cashier_headers,
    )
    by_categories = await client.post(
        "/discounts/for-categories",
        json={"category_ids": [catalog["drinks"].id]},
        headers=cashier_headers,
    )
    by_order_type = await client.get(
        "/discounts/for-order-type/DELIVERY",
        params={"restaurant_id": catalog["restaurant"].id},
        headers=cashier_headers,
    )
    active = await client.get("/discounts/active", headers=cashier_headers)
    empty_products = await client.post("/discounts/for-products", json={"product_ids": []}, headers=cashier_headers)

    assert [d["id"] for d in by_restaurant.json()["data"]] == [restaurant.id]
    assert [d["id"] for d in by_products.json()["data"]] == [drinks.id]
    assert [d["id"] for d in by_categories.json()["data"]] == [drinks.id]
    assert [d["id"] for d in by_order_type.json()["data"]] == [restaurant.id]
    assert len(active.json()["data"]) == 2
    assert empty_products.status_code == 400


async def test_health_check(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
