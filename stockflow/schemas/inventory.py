from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from .base import BaseSchema


class LotReceive(BaseModel):
    order_id: int = Field(ge=1)
    product_id: int = Field(ge=1)
    quantity: int
    expiry_date: date


class LotOut(BaseSchema):
    id: int
    order_id: int
    product_id: int
    expiry_date: date
    quantity: int
    received_quantity: int
    expiry_status: Optional[str] = None


class StockAdjustRequest(BaseModel):
    product_id: int = Field(ge=1)
    lot_id: Optional[int] = Field(default=None, ge=1)
    delta: int


class StockBalanceOut(BaseSchema):
    id: int
    product_id: int
    lot_id: Optional[int] = None
    quantity: int


class ProductOnHand(BaseModel):
    product_id: int
    quantity: int
