from __future__ import annotations

import enum


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELED)

    @classmethod
    def parse(cls, value: "OrderStatus | str") -> "OrderStatus":
        """
        Map canonical names, display names and legacy codes onto the enum.

        Legacy codes still sent by older clients:
        PEND -> PENDING, ANDA/PROC -> PROCESSING, CONC -> COMPLETED,
        CANC -> CANCELED.
        """
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().upper()
        resolved = _SYNONYMS.get(token)
        if resolved is None:
            raise ValueError(
                f"Unknown order status '{value}'. "
                f"Expected one of {', '.join(s.value for s in cls)}."
            )
        return resolved


_SYNONYMS: dict[str, OrderStatus] = {
    "PENDING": OrderStatus.PENDING,
    "PEND": OrderStatus.PENDING,
    "PROCESSING": OrderStatus.PROCESSING,
    "PROC": OrderStatus.PROCESSING,
    "ANDA": OrderStatus.PROCESSING,
    "COMPLETED": OrderStatus.COMPLETED,
    "CONC": OrderStatus.COMPLETED,
    "CANCELED": OrderStatus.CANCELED,
    "CANCELLED": OrderStatus.CANCELED,
    "CANC": OrderStatus.CANCELED,
}
