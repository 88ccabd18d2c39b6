from __future__ import annotations

from decimal import Decimal, InvalidOperation

from stockflow.core.errors import ValidationFailure

CENT = Decimal("0.01")


def to_money(value, *, entity: str, field: str, minimum: Decimal = CENT) -> Decimal:
    """
    Parse a monetary amount with at most two decimal places.

    Returns the value normalised to exactly two places. Values below
    `minimum` or finer than a cent are rejected.
    """
    amount = None
    if value is not None and not isinstance(value, bool):
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            amount = None
    if amount is None or not amount.is_finite():
        raise ValidationFailure(
            message=f"{field} must be a decimal amount.",
            entity=entity,
            field=field,
            constraint="decimal",
        )
    if amount != amount.quantize(CENT):
        raise ValidationFailure(
            message=f"{field} must have at most 2 decimal places.",
            entity=entity,
            field=field,
            constraint="max_2_decimals",
        )
    if amount < minimum:
        raise ValidationFailure(
            message=f"{field} must be at least {minimum}.",
            entity=entity,
            field=field,
            constraint=f"min_{minimum}",
        )
    return amount.quantize(CENT)
