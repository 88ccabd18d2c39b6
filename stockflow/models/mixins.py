from datetime import datetime

from sqlalchemy import DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

SYSTEM_ACTOR = "system@local"


def normalize_actor(actor: str | None) -> str:
    """Lower-cased, trimmed actor email; blank or missing falls back to SYSTEM_ACTOR."""
    return (actor or "").strip().lower() or SYSTEM_ACTOR


class AuditMixin:
    """Creation/change timestamps and the actor who made them."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=SYSTEM_ACTOR,
        server_default=text(f"'{SYSTEM_ACTOR}'"),
    )
    last_changed_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=SYSTEM_ACTOR,
        server_default=text(f"'{SYSTEM_ACTOR}'"),
    )

    def stamp_created(self, actor: str | None) -> None:
        self.created_by = self.last_changed_by = normalize_actor(actor)

    def stamp_changed(self, actor: str | None) -> None:
        # no actor on the request keeps the previous stamp
        if actor and actor.strip():
            self.last_changed_by = normalize_actor(actor)
