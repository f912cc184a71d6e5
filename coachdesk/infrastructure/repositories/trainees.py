"""
Repository for trainee accounts.

Trainees register with a name, email and password. Passwords are stored
as salted werkzeug hashes. Rows created by the earlier web app hold a bare
SHA-256 hex digest instead; those still verify, and are upgraded to a
werkzeug hash on the next successful login. Login here is a simple gate
for the trainee pages, not a substitute for Supabase Auth with row-level
security.
"""

import hashlib
import hmac
import logging
import re
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ...core.library.models import Trainee
from ..database.client import RecordNotFoundError, Row, TableGateway
from ._rows import parse_timestamp

logger = logging.getLogger(__name__)

TABLE = "trainees"

_LEGACY_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


class AuthenticationError(Exception):
    """Raised when an email/password pair doesn't match a trainee."""
    pass


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def is_legacy_hash(stored: str) -> bool:
    """True for the unsalted SHA-256 digests written by the earlier web app."""
    return bool(_LEGACY_DIGEST_RE.match(stored))


def verify_password(stored: Optional[str], password: str) -> bool:
    if not stored:
        return False
    if is_legacy_hash(stored):
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(stored, digest)
    return check_password_hash(stored, password)


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


class TraineeRepository:
    """
    Each method corresponds to a use case:
    - register: create an account from the registration form
    - list: trainer dashboard, oldest first
    - get: load one trainee
    - authenticate: trainee login
    """

    def __init__(self, gateway: TableGateway) -> None:
        self._db = gateway

    def register(self, full_name: str, email: Optional[str], password: str) -> Trainee:
        row = self._db.insert(TABLE, {
            "full_name": full_name.strip(),
            "email": _normalize_email(email),
            "password": hash_password(password),
        })
        trainee = self._to_trainee(row)

        logger.info("Registered trainee", extra={"trainee_id": trainee.id})
        return trainee

    def list(self) -> list[Trainee]:
        rows = self._db.select(TABLE, order_by="created_at")
        return [self._to_trainee(row, include_password=False) for row in rows]

    def get(self, trainee_id: str) -> Trainee:
        rows = self._db.select(TABLE, filters={"id": trainee_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Trainee {trainee_id} not found")
        return self._to_trainee(rows[0], include_password=False)

    def authenticate(self, email: str, password: str) -> Trainee:
        """
        Return the trainee whose email and password match.

        The same error is raised for an unknown email and a wrong password
        so callers can't tell which emails are registered.
        """
        normalized = _normalize_email(email)
        rows = self._db.select(TABLE, filters={"email": normalized}, limit=1) if normalized else []
        stored = rows[0].get("password") if rows else None

        if not verify_password(stored, password):
            logger.warning("Failed trainee login", extra={"email_domain": (normalized or "").split("@")[-1]})
            raise AuthenticationError("Invalid email or password")

        trainee = self._to_trainee(rows[0], include_password=False)
        if is_legacy_hash(stored):
            self._db.update(TABLE, {"id": trainee.id}, {"password": hash_password(password)})
            logger.info("Upgraded legacy password hash", extra={"trainee_id": trainee.id})
        return trainee

    @staticmethod
    def _to_trainee(row: Row, include_password: bool = True) -> Trainee:
        return Trainee(
            id=str(row["id"]),
            full_name=row["full_name"],
            email=row.get("email"),
            password_hash=row.get("password") if include_password else None,
            created_at=parse_timestamp(row.get("created_at")),
        )
