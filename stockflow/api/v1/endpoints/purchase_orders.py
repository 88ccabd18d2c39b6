from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from stockflow.api.deps.request_identity import get_request_email
from stockflow.api.v1.endpoints.lots import lot_out
from stockflow.db.session import get_db
from stockflow.models.order_status import OrderStatus
from stockflow.schemas.inventory import LotOut
from stockflow.schemas.ledger import LedgerEntryOut
from stockflow.schemas.purchase_order import (
    POCascadeReport,
    PODeleteRequest,
    POHeader,
    POHeaderCreate,
    POHeaderSummary,
    POHeaderUpdate,
    POItem,
    POItemCreate,
    POItemUpdate,
    POStatusCount,
    POTransitionRequest,
)
from stockflow.schemas.receipt import ReceiptCreate, ReceiptOut
from stockflow.services.ledger_service import LedgerService
from stockflow.services.line_item_service import LineItemService
from stockflow.services.lot_service import LotService
from stockflow.services.order_cascade_service import OrderCascadeService
from stockflow.services.purchase_order_service import PurchaseOrderService
from stockflow.services.receipt_service import ReceiptService

router = APIRouter()


@router.post("", response_model=POHeader, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    payload: POHeaderCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).create(payload, user_email=get_request_email(request))


@router.get("", response_model=List[POHeaderSummary])
def list_purchase_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).list_orders(status=status_filter, skip=skip, limit=limit)


@router.get("/overdue", response_model=List[POHeaderSummary])
def list_overdue_purchase_orders(db: Session = Depends(get_db)):
    return PurchaseOrderService(db).list_overdue()


@router.get("/by-value", response_model=List[POHeaderSummary])
def list_purchase_orders_by_value(
    min_total: Optional[Decimal] = Query(None, ge=0),
    max_total: Optional[Decimal] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).list_by_value_range(min_total, max_total)


@router.get("/by-expected-date", response_model=List[POHeaderSummary])
def list_purchase_orders_by_expected_date(
    expected: date = Query(...),
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).list_by_expected_date(expected)


@router.get("/by-period", response_model=List[POHeaderSummary])
def list_purchase_orders_by_period(
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).list_by_order_period(start, end)


@router.get("/count", response_model=POStatusCount)
def count_purchase_orders(
    status_filter: str = Query(..., alias="status"),
    db: Session = Depends(get_db),
):
    count = PurchaseOrderService(db).count_by_status(status_filter)
    return POStatusCount(status=OrderStatus.parse(status_filter), count=count)


@router.get("/{order_id}", response_model=POHeader)
def get_purchase_order(order_id: int, db: Session = Depends(get_db)):
    return PurchaseOrderService(db).get(order_id)


@router.patch("/{order_id}", response_model=POHeader)
def update_purchase_order(
    order_id: int,
    payload: POHeaderUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).update(
        order_id, payload, user_email=get_request_email(request)
    )


@router.post("/{order_id}/transition", response_model=POHeader)
def transition_purchase_order(
    order_id: int,
    payload: POTransitionRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    return PurchaseOrderService(db).transition(
        order_id, payload.status, user_email=get_request_email(request)
    )


@router.delete("/{order_id}", response_model=POCascadeReport)
def delete_purchase_order(
    order_id: int,
    request: Request,
    payload: Optional[PODeleteRequest] = None,
    db: Session = Depends(get_db),
):
    payload = payload or PODeleteRequest()
    report = OrderCascadeService(db).delete_order(
        order_id,
        login=payload.login,
        password=payload.password,
        reason=payload.reason,
        user_email=get_request_email(request),
    )
    return POCascadeReport(
        order_id=report.order_id,
        actor=report.actor,
        reason=report.reason,
        ledger_entries_deleted=report.ledger_entries_deleted,
        lots_deleted=report.lots_deleted,
        stock_balances_deleted=report.stock_balances_deleted,
        items_deleted=report.items_deleted,
        completed_step=report.completed_step.value,
    )


@router.get("/{order_id}/items", response_model=List[POItem])
def list_purchase_order_items(order_id: int, db: Session = Depends(get_db)):
    return LineItemService(db).list_items(order_id)


@router.post(
    "/{order_id}/items",
    response_model=List[POItem],
    status_code=status.HTTP_201_CREATED,
)
def add_purchase_order_items(
    order_id: int,
    payload: List[POItemCreate],
    db: Session = Depends(get_db),
):
    return LineItemService(db).add_items(order_id, payload)


@router.patch("/{order_id}/items/{item_id}", response_model=POItem)
def update_purchase_order_item(
    order_id: int,
    item_id: int,
    payload: POItemUpdate,
    db: Session = Depends(get_db),
):
    return LineItemService(db).update_item(order_id, item_id, payload)


@router.delete("/{order_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_purchase_order_item(order_id: int, item_id: int, db: Session = Depends(get_db)):
    LineItemService(db).remove_item(order_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{order_id}/receipts",
    response_model=ReceiptOut,
    status_code=status.HTTP_201_CREATED,
)
def receive_goods(order_id: int, payload: ReceiptCreate, db: Session = Depends(get_db)):
    result = ReceiptService(db).receive_goods(
        order_id,
        payload.product_id,
        payload.quantity,
        payload.expiry_date,
        posting_date=payload.posting_date,
        debit_account_id=payload.debit_account_id,
        credit_account_id=payload.credit_account_id,
    )
    return ReceiptOut(
        lot=lot_out(result.lot),
        entries=[LedgerEntryOut.model_validate(entry) for entry in result.entries],
    )


@router.get("/{order_id}/lots", response_model=List[LotOut])
def list_purchase_order_lots(order_id: int, db: Session = Depends(get_db)):
    return [lot_out(lot) for lot in LotService(db).list_for_order(order_id)]


@router.get("/{order_id}/ledger", response_model=List[LedgerEntryOut])
def list_purchase_order_ledger(order_id: int, db: Session = Depends(get_db)):
    return LedgerService(db).list_for_order(order_id)
