from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from decimal import Decimal

from app.models.enums.order_type import OrderType


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(ORMBase):
    id: int
    product_id: int
    quantity: int
    price: Decimal
    is_refund: bool


class OrderOut(ORMBase):
    id: int
    restaurant_id: Optional[int]
    customer_id: Optional[int]
    order_type: OrderType
    total_amount: Decimal
    discount_amount: Decimal
    has_discount: bool
    items: List[OrderItemOut]
