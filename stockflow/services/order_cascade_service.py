from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockflow.core.config import settings
from stockflow.core.errors import (
    AccessDeniedFailure,
    FatalFailure,
    InvalidStateFailure,
    NotFoundFailure,
)
from stockflow.core.flow_logging import flow_info
from stockflow.crud import line_item as item_crud
from stockflow.crud import lot as lot_crud
from stockflow.crud import purchase_order as order_crud
from stockflow.crud import stock_balance as balance_crud
from stockflow.db.session import unit_of_work
from stockflow.models.order_status import OrderStatus
from stockflow.services.credential_service import CredentialVerifier, UserCredentialVerifier
from stockflow.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class CascadeStep(str, enum.Enum):
    PRECONDITION = "PRECONDITION"
    LEDGER_ENTRIES = "LEDGER_ENTRIES"
    LOTS = "LOTS"
    LINE_ITEMS = "LINE_ITEMS"
    ORDER = "ORDER"
    DONE = "DONE"


NEXT_STEP: dict[CascadeStep, CascadeStep] = {
    CascadeStep.PRECONDITION: CascadeStep.LEDGER_ENTRIES,
    CascadeStep.LEDGER_ENTRIES: CascadeStep.LOTS,
    CascadeStep.LOTS: CascadeStep.LINE_ITEMS,
    CascadeStep.LINE_ITEMS: CascadeStep.ORDER,
    CascadeStep.ORDER: CascadeStep.DONE,
}


@dataclass
class CascadeReport:
    order_id: int
    actor: str | None = None
    reason: str | None = None
    ledger_entries_deleted: int = 0
    lots_deleted: int = 0
    stock_balances_deleted: int = 0
    items_deleted: int = 0
    completed_step: CascadeStep | None = None


class OrderCascadeService:
    """
    Deletes a purchase order together with everything that references it.

    Steps run in a fixed order inside one transaction with the order row
    locked. A business failure at any step leaves the database exactly as
    it was; a storage failure is reported as FatalFailure naming the step.
    """

    def __init__(self, db: Session, verifier: CredentialVerifier | None = None):
        self.db = db
        self.verifier = verifier or UserCredentialVerifier(db)
        self.ledger = LedgerService(db)
        self._handlers: dict[CascadeStep, Callable[[CascadeReport], None]] = {
            CascadeStep.PRECONDITION: self._check_precondition,
            CascadeStep.LEDGER_ENTRIES: self._delete_ledger_entries,
            CascadeStep.LOTS: self._delete_lots,
            CascadeStep.LINE_ITEMS: self._delete_line_items,
            CascadeStep.ORDER: self._delete_order_row,
        }

    def _check_precondition(self, report: CascadeReport) -> None:
        order = order_crud.get_order(self.db, report.order_id, for_update=True)
        if order is None:
            raise NotFoundFailure(
                message=f"Purchase order {report.order_id} not found.",
                entity="purchase_order",
                entity_id=report.order_id,
            )
        if order.status == OrderStatus.COMPLETED:
            raise InvalidStateFailure(
                message="A COMPLETED purchase order cannot be deleted.",
                entity="purchase_order",
                entity_id=report.order_id,
                field="status",
                constraint="not_completed",
            )

    def _delete_ledger_entries(self, report: CascadeReport) -> None:
        report.ledger_entries_deleted = self.ledger.delete_entries_for_order(report.order_id)

    def _delete_lots(self, report: CascadeReport) -> None:
        lot_ids = [lot.id for lot in lot_crud.list_lots_for_order(self.db, report.order_id)]
        balances = balance_crud.list_balances_for_lots(self.db, lot_ids)
        allocated = [b for b in balances if int(b.quantity or 0) > 0]
        if allocated:
            first = allocated[0]
            raise InvalidStateFailure(
                message=(
                    f"Lot {first.lot_id} still has {first.quantity} unit(s) of stock "
                    f"allocated; drain it before deleting the order."
                ),
                entity="lot",
                entity_id=first.lot_id,
                field="quantity",
                constraint="stock_still_allocated",
            )
        report.stock_balances_deleted = balance_crud.delete_balances_for_lots(self.db, lot_ids)
        report.lots_deleted = lot_crud.delete_lots(self.db, lot_ids)

    def _delete_line_items(self, report: CascadeReport) -> None:
        report.items_deleted = item_crud.delete_items_for_order(self.db, report.order_id)

    def _delete_order_row(self, report: CascadeReport) -> None:
        order_crud.delete_order(self.db, report.order_id)

    def cascade_delete(
        self,
        order_id: int,
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> CascadeReport:
        report = CascadeReport(order_id=order_id, actor=actor, reason=reason)
        step = CascadeStep.PRECONDITION
        try:
            with unit_of_work(self.db):
                while step is not CascadeStep.DONE:
                    self._handlers[step](report)
                    report.completed_step = step
                    flow_info(
                        logger,
                        "order_cascade_step order_id=%s step=%s",
                        order_id,
                        step.value,
                        category="cascade",
                    )
                    step = NEXT_STEP[step]
                report.completed_step = CascadeStep.DONE
        except SQLAlchemyError as exc:
            logger.exception(
                "order_cascade_failed order_id=%s step=%s",
                order_id,
                step.value,
            )
            raise FatalFailure(
                message=f"Deleting purchase order {order_id} failed at step {step.value}.",
                entity="purchase_order",
                entity_id=order_id,
                step=step.value,
            ) from exc

        flow_info(
            logger,
            "order_cascade_deleted order_id=%s actor=%s reason=%s ledger=%s lots=%s items=%s",
            order_id,
            actor,
            reason,
            report.ledger_entries_deleted,
            report.lots_deleted,
            report.items_deleted,
            category="cascade",
        )
        return report

    def delete_order(
        self,
        order_id: int,
        *,
        login: str | None = None,
        password: str | None = None,
        reason: str | None = None,
        user_email: str | None = None,
    ) -> CascadeReport:
        """
        Authorised entry point for order deletion.

        When credentials are required a denied check raises
        AccessDeniedFailure before anything is read or written.
        """
        actor = user_email
        if settings.ORDER_DELETE_REQUIRES_CREDENTIALS:
            decision = self.verifier.verify(login, password)
            if not decision.allowed:
                logger.warning("order_delete_denied order_id=%s login=%s", order_id, login)
                raise AccessDeniedFailure(
                    message="Credentials were not accepted for order deletion.",
                    entity="purchase_order",
                    entity_id=order_id,
                )
            actor = decision.actor or login
        return self.cascade_delete(order_id, actor=actor, reason=reason)
