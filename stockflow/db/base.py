import re

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    # Class 'LedgerEntry' automatically becomes table 'ledger_entry'
    # unless the model sets __tablename__ explicitly.
    @declared_attr.directive
    def __tablename__(cls) -> str:
        return re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
