from __future__ import annotations

from dataclasses import dataclass
import hashlib
import hmac
import logging
import secrets
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stockflow.core.config import settings
from stockflow.models.users import AppUser

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"


@dataclass(frozen=True)
class CredentialDecision:
    allowed: bool
    actor: str | None = None


class CredentialVerifier(Protocol):
    def verify(self, login: str | None, password: str | None) -> CredentialDecision: ...


def _digest(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    ).hex()


def hash_password(password: str, *, iterations: int | None = None, salt: str | None = None) -> str:
    rounds = int(iterations or settings.PASSWORD_HASH_ITERATIONS)
    salt = salt or secrets.token_hex(16)
    return f"{HASH_ALGORITHM}${rounds}${salt}${_digest(password, salt, rounds)}"


def check_password(password: str, encoded: str) -> bool:
    try:
        algorithm, rounds, salt, expected = (encoded or "").split("$", 3)
        iterations = int(rounds)
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    return hmac.compare_digest(_digest(password, salt, iterations), expected)


class UserCredentialVerifier:
    """Checks login/password against active app_user rows."""

    def __init__(self, db: Session):
        self.db = db

    def verify(self, login: str | None, password: str | None) -> CredentialDecision:
        normalized = (login or "").strip().lower()
        if not normalized or not password:
            return CredentialDecision(allowed=False)
        stmt = (
            select(AppUser)
            .where(func.lower(AppUser.login) == normalized)
            .where(AppUser.is_active.is_(True))
        )
        user = self.db.execute(stmt).scalar_one_or_none()
        if user is None or not check_password(password, user.password_hash):
            logger.warning("credential_check_denied login=%s", normalized)
            return CredentialDecision(allowed=False)
        return CredentialDecision(allowed=True, actor=user.email)
