from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from stockflow.db.base import Base


class AppUser(Base):
    __tablename__ = "app_user"

    __table_args__ = (
        UniqueConstraint("login", name="uq_app_user_login"),
        UniqueConstraint("email", name="uq_app_user_email"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[object] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    login: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # "pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>"
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
