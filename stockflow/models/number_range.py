from sqlalchemy import BigInteger, Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockflow.db.base import Base


class SysNumberRange(Base):
    __tablename__ = "sys_number_range"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Category of the numbered document: 'LEDGER' for posting numbers.
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("category", name="uq_sys_number_range_category"),
    )
