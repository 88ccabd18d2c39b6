import os

from stockflow.db.session import SessionLocal
from stockflow.models.number_range import SysNumberRange
from stockflow.models.reference import LedgerAccount
from stockflow.models.users import AppUser
from stockflow.services.credential_service import hash_password

# Receipt postings debit inventory and credit supplier payables; the ids of
# these two rows are what RECEIPT_DEBIT/CREDIT_ACCOUNT_ID point at.
DEFAULT_ACCOUNTS = [
    ("1.1.4", "Inventory"),
    ("2.1.1", "Suppliers payable"),
]


def _ensure_account(db, code: str, name: str) -> bool:
    existing = db.query(LedgerAccount).filter(LedgerAccount.code == code).first()
    if existing:
        return False
    db.add(LedgerAccount(code=code, name=name, is_active=True))
    return True


def _ensure_range(db, category: str) -> bool:
    existing = db.query(SysNumberRange).filter(SysNumberRange.category == category).first()
    if existing:
        return False
    db.add(SysNumberRange(category=category, current_value=0, is_active=True))
    return True


def _ensure_admin(db, login: str, email: str, password: str) -> bool:
    existing = db.query(AppUser).filter(AppUser.login == login).first()
    if existing:
        return False
    db.add(
        AppUser(
            login=login,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    return True


def main():
    db = SessionLocal()
    try:
        created = 0
        for code, name in DEFAULT_ACCOUNTS:
            if _ensure_account(db, code, name):
                created += 1
        if _ensure_range(db, "LEDGER"):
            created += 1

        login = (os.getenv("SEED_ADMIN_LOGIN") or "").strip()
        password = os.getenv("SEED_ADMIN_PASSWORD") or ""
        if login and password:
            email = (os.getenv("SEED_ADMIN_EMAIL") or f"{login}@local").strip().lower()
            if _ensure_admin(db, login, email, password):
                created += 1

        db.commit()
        print(f"Seed complete. Added {created} reference rows.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
