from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stockflow.db.session import get_db
from stockflow.schemas.inventory import ProductOnHand, StockAdjustRequest, StockBalanceOut
from stockflow.services.stock_service import StockService

router = APIRouter()


@router.post("/adjust", response_model=StockBalanceOut)
def adjust_stock(payload: StockAdjustRequest, db: Session = Depends(get_db)):
    return StockService(db).adjust_stock(payload.product_id, payload.lot_id, payload.delta)


@router.get("", response_model=List[StockBalanceOut])
def list_stock_balances(
    product_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return StockService(db).list_balances(product_id)


@router.get("/low", response_model=List[StockBalanceOut])
def list_low_stock(threshold: int = Query(..., ge=1), db: Session = Depends(get_db)):
    return StockService(db).list_low_stock(threshold)


@router.get("/zero", response_model=List[StockBalanceOut])
def list_zero_stock(db: Session = Depends(get_db)):
    return StockService(db).list_zero_stock()


@router.get("/products/{product_id}", response_model=StockBalanceOut)
def get_stock_balance(
    product_id: int,
    lot_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return StockService(db).get_balance(product_id, lot_id)


@router.get("/products/{product_id}/on-hand", response_model=ProductOnHand)
def get_on_hand_total(product_id: int, db: Session = Depends(get_db)):
    return ProductOnHand(
        product_id=product_id,
        quantity=StockService(db).on_hand_total(product_id),
    )
