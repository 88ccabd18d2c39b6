from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from stockflow.db.session import get_db
from stockflow.schemas.inventory import LotOut, LotReceive
from stockflow.services.lot_service import LotService, expiry_status

router = APIRouter()


def lot_out(lot) -> LotOut:
    return LotOut.model_validate(lot).model_copy(
        update={"expiry_status": expiry_status(lot.expiry_date)}
    )


@router.post("", response_model=LotOut, status_code=status.HTTP_201_CREATED)
def receive_lot(payload: LotReceive, db: Session = Depends(get_db)):
    lot = LotService(db).receive_lot(
        payload.order_id,
        payload.product_id,
        payload.quantity,
        payload.expiry_date,
    )
    return lot_out(lot)


@router.get("/expired", response_model=List[LotOut])
def list_expired_lots(db: Session = Depends(get_db)):
    return [lot_out(lot) for lot in LotService(db).list_expired()]


@router.get("/expiring-soon", response_model=List[LotOut])
def list_expiring_lots(
    days: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    return [lot_out(lot) for lot in LotService(db).list_expiring_soon(days)]


@router.get("/{lot_id}", response_model=LotOut)
def get_lot(lot_id: int, db: Session = Depends(get_db)):
    return lot_out(LotService(db).get(lot_id))


@router.delete("/{lot_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_lot(lot_id: int, db: Session = Depends(get_db)):
    LotService(db).remove_lot(lot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
