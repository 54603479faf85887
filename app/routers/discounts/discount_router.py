# app/routers/discounts/discount_router.py

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.discount_enums import DiscountType, DiscountTargetType
from app.models.enums.order_type import OrderType
from app.schemas.discounts.discount_schemas import (
    DiscountCreate,
    DiscountUpdate,
    DiscountOut,
    OrderContextRequest,
    BestDiscountRequest,
    BestDiscountOut,
    ProductIdsRequest,
    CategoryIdsRequest,
    ValidateDiscountRequest,
    ValidationResultOut,
    MinAmountCheckOut,
    ApplyDiscountRequest,
    ApplyDiscountOut,
)
from app.schemas.discounts.promo_code_schemas import (
    GeneratePromoCodeRequest,
    GeneratedPromoCodeOut,
    PromoCodeOut,
)
from app.services.discounts.discount_service import (
    create_discount,
    list_discounts,
    get_discount,
    get_discount_by_code,
    update_discount,
    delete_discount,
)
from app.services.discounts.discount_finder import (
    find_discounts_for_order,
    find_active_discounts,
    find_discounts_by_restaurant,
    find_discounts_for_products,
    find_discounts_for_categories,
    find_discounts_for_order_type,
    check_min_order_amount,
)
from app.services.discounts.discount_eligibility import validate_discount
from app.services.discounts.discount_calculator import get_best_discount
from app.services.discounts.discount_application_service import apply_discount_to_order
from app.services.discounts.promo_code_service import generate_promo_code, list_customer_promo_codes
from app.utils.check_roles import require_role
from app.utils.response import APIResponse, PageData, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/discounts", tags=["Discounts"])
logger = get_logger(__name__)

STAFF = ["admin", "cashier"]


def _out(discounts) -> list[DiscountOut]:
    return [DiscountOut.model_validate(d) for d in discounts]


# =====================================================
# MANAGEMENT
# =====================================================
@router.post("/", response_model=APIResponse[DiscountOut], status_code=201)
async def create_discount_api(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    logger.info("Create discount", extra={"discount_code": payload.code})
    data = await create_discount(db, payload, user)
    return success_response("Discount created successfully", data)


@router.get("/", response_model=APIResponse[PageData[DiscountOut]])
async def list_discounts_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),

    target_type: DiscountTargetType | None = Query(None),
    discount_type: DiscountType | None = Query(None),
    is_active: bool | None = Query(None),
    has_code: bool | None = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    logger.info("List discounts")
    data = await list_discounts(
        db=db,
        target_type=target_type,
        discount_type=discount_type,
        is_active=is_active,
        has_code=has_code,
        page=page,
        page_size=page_size,
    )
    return success_response("Discounts fetched successfully", data)


# =====================================================
# LOOKUPS (static paths before /{discount_id})
# =====================================================
@router.get("/active", response_model=APIResponse[List[DiscountOut]])
async def list_active_discounts_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List active discounts")
    data = _out(await find_active_discounts(db))
    return success_response("Active discounts fetched successfully", data)


@router.get("/code/{code}", response_model=APIResponse[DiscountOut])
async def get_discount_by_code_api(
    code: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Get discount by code", extra={"discount_code": code})
    data = await get_discount_by_code(db, code)
    return success_response("Discount fetched successfully", data)


@router.get("/restaurant/{restaurant_id}", response_model=APIResponse[List[DiscountOut]])
async def list_restaurant_discounts_api(
    restaurant_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List restaurant discounts", extra={"restaurant_id": restaurant_id})
    data = _out(await find_discounts_by_restaurant(db, restaurant_id))
    return success_response("Restaurant discounts fetched successfully", data)


@router.post("/for-products", response_model=APIResponse[List[DiscountOut]])
async def list_product_discounts_api(
    payload: ProductIdsRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List product discounts", extra={"product_count": len(payload.product_ids)})
    data = _out(await find_discounts_for_products(db, payload.product_ids))
    return success_response("Product discounts fetched successfully", data)


@router.post("/for-categories", response_model=APIResponse[List[DiscountOut]])
async def list_category_discounts_api(
    payload: CategoryIdsRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List category discounts", extra={"category_count": len(payload.category_ids)})
    data = _out(await find_discounts_for_categories(db, payload.category_ids))
    return success_response("Category discounts fetched successfully", data)


@router.get("/for-order-type/{order_type}", response_model=APIResponse[List[DiscountOut]])
async def list_order_type_discounts_api(
    order_type: OrderType,
    restaurant_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List order type discounts", extra={"order_type": order_type.value})
    data = _out(await find_discounts_for_order_type(db, order_type, restaurant_id))
    return success_response("Order type discounts fetched successfully", data)


@router.post("/for-current-order", response_model=APIResponse[List[DiscountOut]])
async def list_current_order_discounts_api(
    payload: OrderContextRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Find discounts for order", extra={"order_type": payload.order_type.value})
    discounts = await find_discounts_for_order(
        db,
        order_type=payload.order_type,
        product_ids=payload.product_ids,
        category_ids=payload.category_ids,
        restaurant_id=payload.restaurant_id,
    )
    return success_response("Applicable discounts fetched successfully", _out(discounts))


@router.post("/best", response_model=APIResponse[BestDiscountOut])
async def best_discount_api(
    payload: BestDiscountRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Best discount", extra={"order_type": payload.order_type.value})
    data = await get_best_discount(
        db,
        order_type=payload.order_type,
        product_ids=payload.product_ids,
        category_ids=payload.category_ids,
        restaurant_id=payload.restaurant_id,
        amount=payload.amount,
        customer_id=payload.customer_id,
    )
    return success_response("Best discount fetched successfully", data)


@router.get("/customer/{customer_id}/promocodes", response_model=APIResponse[List[PromoCodeOut]])
async def list_customer_promo_codes_api(
    customer_id: int,
    include_used: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("List customer promo codes", extra={"customer_id": customer_id})
    data = await list_customer_promo_codes(db, customer_id, include_used=include_used)
    return success_response("Promo codes fetched successfully", data)


# =====================================================
# SINGLE DISCOUNT
# =====================================================
@router.get("/{discount_id}", response_model=APIResponse[DiscountOut])
async def get_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Get discount", extra={"discount_id": discount_id})
    data = await get_discount(db, discount_id)
    return success_response("Discount fetched successfully", data)


@router.patch("/{discount_id}", response_model=APIResponse[DiscountOut])
async def update_discount_api(
    discount_id: int,
    payload: DiscountUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    logger.info("Update discount", extra={"discount_id": discount_id})
    data = await update_discount(db, discount_id, payload, user)
    return success_response("Discount updated successfully", data)


@router.delete("/{discount_id}", response_model=APIResponse[DiscountOut])
async def delete_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    logger.info("Delete discount", extra={"discount_id": discount_id})
    data = await delete_discount(db, discount_id, user)
    return success_response("Discount deleted successfully", data)


@router.get("/{discount_id}/check-min-amount", response_model=APIResponse[MinAmountCheckOut])
async def check_min_amount_api(
    discount_id: int,
    amount: Decimal = Query(..., ge=0),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Check minimum amount", extra={"discount_id": discount_id})
    is_valid = await check_min_order_amount(db, discount_id, amount)
    return success_response("Minimum amount checked", MinAmountCheckOut(is_valid=is_valid))


@router.post("/{discount_id}/validate", response_model=APIResponse[ValidationResultOut])
async def validate_discount_api(
    discount_id: int,
    payload: ValidateDiscountRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Validate discount", extra={"discount_id": discount_id})
    data = await validate_discount(db, discount_id, payload.amount, payload.customer_id)
    return success_response("Discount validated", data)


@router.post("/{discount_id}/apply/{order_id}", response_model=APIResponse[ApplyDiscountOut])
async def apply_discount_api(
    discount_id: int,
    order_id: int,
    payload: ApplyDiscountRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Apply discount", extra={"discount_id": discount_id, "order_id": order_id})
    data = await apply_discount_to_order(
        db,
        order_id=order_id,
        discount_id=discount_id,
        customer_id=payload.customer_id,
        user=user,
    )
    return success_response("Discount applied successfully", data)


@router.post("/{discount_id}/generate-code", response_model=APIResponse[GeneratedPromoCodeOut])
async def generate_promo_code_api(
    discount_id: int,
    payload: GeneratePromoCodeRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF)),
):
    logger.info("Generate promo code", extra={"discount_id": discount_id, "customer_id": payload.customer_id})
    data = await generate_promo_code(db, discount_id, payload.customer_id, user)
    return success_response("Promo code generated successfully", data)
