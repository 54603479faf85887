from pydantic import BaseModel, ConfigDict
from datetime import datetime


class GeneratePromoCodeRequest(BaseModel):
    customer_id: int


class GeneratedPromoCodeOut(BaseModel):
    code: str


class PromoCodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    customer_id: int
    discount_id: int
    discount_title: str
    used: bool
    created_at: datetime
