from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from stockflow.models.order_status import OrderStatus
from .base import BaseSchema, PatchSchema


def _parse_status(value):
    if value is None:
        return value
    return OrderStatus.parse(value)


class POItemBase(BaseModel):
    product_id: int = Field(ge=1)
    quantity: int
    unit_price: Decimal
    expiry_date: date


class POItemCreate(POItemBase):
    pass


class POItemUpdate(PatchSchema):
    # product_id is accepted only so that an attempt to change it can be
    # reported as a validation failure instead of being silently ignored.
    product_id: Optional[int] = None
    quantity: Optional[int] = None
    unit_price: Optional[Decimal] = None
    expiry_date: Optional[date] = None


class POItem(POItemBase, BaseSchema):
    id: int
    order_id: int
    line_total: Decimal = Field(max_digits=14, decimal_places=2)


class POHeaderBase(BaseModel):
    status: OrderStatus
    order_date: date
    expected_date: date
    delivery_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_synonyms(cls, value):
        return _parse_status(value)


class POHeaderCreate(POHeaderBase):
    # Accepted only when the draft carries no items; otherwise the total is
    # derived from the items.
    total_amount: Optional[Decimal] = None
    items: List[POItemCreate] = []
    created_by: Optional[str] = None


class POHeaderUpdate(PatchSchema):
    status: Optional[OrderStatus] = None
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    delivery_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_synonyms(cls, value):
        return _parse_status(value)


class POTransitionRequest(BaseModel):
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def _status_synonyms(cls, value):
        return _parse_status(value)


class POHeader(POHeaderBase, BaseSchema):
    id: int
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    items: List[POItem] = []
    created_by: Optional[str] = None
    last_changed_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class POHeaderSummary(POHeaderBase, BaseSchema):
    id: int
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)


class POStatusCount(BaseModel):
    status: OrderStatus
    count: int


class PODeleteRequest(BaseModel):
    login: Optional[str] = None
    password: Optional[str] = None
    reason: Optional[str] = None


class POCascadeReport(BaseModel):
    order_id: int
    actor: Optional[str] = None
    reason: Optional[str] = None
    ledger_entries_deleted: int = 0
    lots_deleted: int = 0
    stock_balances_deleted: int = 0
    items_deleted: int = 0
    completed_step: str
