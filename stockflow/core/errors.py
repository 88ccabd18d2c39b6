from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainFailure(Exception):
    """
    Base failure raised by the service layer.

    Carries enough context (entity, id, field, violated constraint) for the
    request layer to render a user-facing message without parsing strings.
    """

    message: str
    code: str = "DOMAIN_ERROR"
    status_code: int = 400
    entity: str | None = None
    entity_id: int | None = None
    field: str | None = None
    constraint: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.entity:
            detail["entity"] = self.entity
        if self.entity_id is not None:
            detail["entity_id"] = self.entity_id
        if self.field:
            detail["field"] = self.field
        if self.constraint:
            detail["constraint"] = self.constraint
        return detail


@dataclass(eq=False)
class ValidationFailure(DomainFailure):
    code: str = "VALIDATION"
    status_code: int = 422


@dataclass(eq=False)
class NotFoundFailure(DomainFailure):
    code: str = "NOT_FOUND"
    status_code: int = 404


@dataclass(eq=False)
class InvalidStateFailure(DomainFailure):
    code: str = "INVALID_STATE"
    status_code: int = 409


@dataclass(eq=False)
class InsufficientStockFailure(DomainFailure):
    code: str = "INSUFFICIENT_STOCK"
    status_code: int = 409
    available: int | None = None
    requested: int | None = None

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        if self.available is not None:
            detail["available"] = self.available
        if self.requested is not None:
            detail["requested"] = self.requested
        return detail


@dataclass(eq=False)
class AccessDeniedFailure(DomainFailure):
    code: str = "ACCESS_DENIED"
    status_code: int = 403


@dataclass(eq=False)
class FatalFailure(DomainFailure):
    """Unexpected storage/integrity failure. Never retried automatically."""

    code: str = "FATAL"
    status_code: int = 500
    step: str | None = None

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        if self.step:
            detail["step"] = self.step
        return detail
