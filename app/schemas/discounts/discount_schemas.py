# app/schemas/discounts/discount_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from app.models.enums.discount_enums import DiscountType, DiscountTargetType, DayOfWeek
from app.models.enums.order_type import OrderType
from app.schemas.orders.order_schemas import OrderOut


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Weekdays arrive either as 0=Sunday..6=Saturday or as names.
DayOfWeekInput = Union[int, str]


# =====================================================
# CREATE / UPDATE
# =====================================================
class DiscountBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: DiscountType
    value: Decimal
    target_type: DiscountTargetType = DiscountTargetType.ALL
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    order_types: List[OrderType] = Field(default_factory=lambda: list(OrderType))
    days_of_week: List[DayOfWeekInput] = Field(default_factory=list)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    max_uses: Optional[int] = Field(None, ge=1)
    is_active: bool = True


class DiscountCreate(DiscountBase):
    restaurant_ids: Optional[List[int]] = None
    category_ids: Optional[List[int]] = None
    product_ids: Optional[List[int]] = None


class DiscountUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = None
    target_type: Optional[DiscountTargetType] = None
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    order_types: Optional[List[OrderType]] = None
    days_of_week: Optional[List[DayOfWeekInput]] = None
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    max_uses: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    # Present lists replace the whole association set
    restaurant_ids: Optional[List[int]] = None
    category_ids: Optional[List[int]] = None
    product_ids: Optional[List[int]] = None


# =====================================================
# OUTPUT
# =====================================================
class DiscountOut(ORMBase):
    id: int
    title: str
    description: Optional[str]
    type: DiscountType
    value: Decimal
    target_type: DiscountTargetType
    min_order_amount: Optional[Decimal]

    start_date: Optional[datetime]
    end_date: Optional[datetime]
    order_types: List[OrderType]
    days_of_week: List[DayOfWeek]

    code: Optional[str]
    max_uses: Optional[int]
    current_uses: int
    is_active: bool

    restaurant_ids: List[int]
    category_ids: List[int]
    product_ids: List[int]

    created_at: datetime
    updated_at: Optional[datetime]


# =====================================================
# ORDER CONTEXT
# =====================================================
class OrderContextRequest(BaseModel):
    order_type: OrderType
    product_ids: List[int] = Field(default_factory=list)
    category_ids: List[int] = Field(default_factory=list)
    restaurant_id: Optional[int] = None


class BestDiscountRequest(OrderContextRequest):
    amount: Optional[Decimal] = Field(None, ge=0)
    customer_id: Optional[int] = None


class BestDiscountOut(BaseModel):
    discount: Optional[DiscountOut]
    # None when the winner is an item-scoped percentage
    amount: Optional[Decimal]


class ProductIdsRequest(BaseModel):
    product_ids: List[int]


class CategoryIdsRequest(BaseModel):
    category_ids: List[int]


# =====================================================
# VALIDATION / APPLICATION
# =====================================================
class ValidateDiscountRequest(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0)
    customer_id: Optional[int] = None


class ValidationResultOut(BaseModel):
    is_valid: bool
    message: Optional[str] = None


class MinAmountCheckOut(BaseModel):
    is_valid: bool


class ApplyDiscountRequest(BaseModel):
    customer_id: Optional[int] = None


class ApplyDiscountOut(BaseModel):
    discount_amount: Decimal
    description: str
    new_total: Decimal
    order: OrderOut
