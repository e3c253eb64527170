"""Credential store: users and pending signups on top of a SQLAlchemy session.

Every public method is a single-row operation committed on its own, except
promote_to_user() which stages the new user and the removal of its pending record
in one transaction.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from phoneauth.errors import ConflictError, InternalError, SessionExpiredError
from phoneauth.models.pending_signup import PendingSignup
from phoneauth.models.user import User

log = logging.getLogger("uvicorn.error")

PENDING_FIELDS = ("name", "email", "password_hash")
USER_UPDATE_FIELDS = ("name", "email", "updated_at")


def _upsert_statement(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e))
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("[Store] commit failed")
            raise InternalError()

    # -- users --

    def find_user_by_phone(self, phone: str) -> User | None:
        return self.db.query(User).filter(User.phone == phone).first()

    def find_user_by_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_user_by_email_excluding(self, email: str, exclude_id: str | None) -> User | None:
        q = self.db.query(User).filter(User.email == email)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        return q.first()

    def user_exists(self, email: str, phone: str) -> bool:
        return (
            self.db.query(User.id)
            .filter(or_(User.email == email, User.phone == phone))
            .first()
            is not None
        )

    def update_user(self, user_id: str, fields: dict[str, Any]) -> bool:
        values = {k: v for k, v in fields.items() if k in USER_UPDATE_FIELDS}
        matched = (
            self.db.query(User)
            .filter(User.id == user_id)
            .update(values, synchronize_session="fetch")
        )
        self._commit()
        return matched > 0

    # -- pending signups --

    def find_pending(self, phone: str) -> PendingSignup | None:
        return self.db.query(PendingSignup).filter(PendingSignup.phone == phone).first()

    def upsert_pending(self, phone: str, fields: dict[str, Any]) -> None:
        """Replace the pending signup for this phone; the latest call wins."""
        values = {k: fields[k] for k in PENDING_FIELDS}
        values["created_at"] = fields.get("created_at") or datetime.now(timezone.utc)
        insert = _upsert_statement(self.db.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(PendingSignup).values(phone=phone, **values)
            stmt = stmt.on_conflict_do_update(index_elements=[PendingSignup.phone], set_=values)
            self.db.execute(stmt)
        else:
            self.db.merge(PendingSignup(phone=phone, **values))
        self._commit()

    def touch_pending(self, phone: str, created_at: datetime) -> bool:
        matched = (
            self.db.query(PendingSignup)
            .filter(PendingSignup.phone == phone)
            .update({"created_at": created_at}, synchronize_session="fetch")
        )
        self._commit()
        return matched > 0

    def delete_pending(self, phone: str, commit: bool = True) -> int:
        deleted = self.db.query(PendingSignup).filter(PendingSignup.phone == phone).delete(
            synchronize_session="fetch"
        )
        if commit:
            self._commit()
        return deleted

    def delete_expired_pending(self, before: datetime) -> int:
        deleted = self.db.query(PendingSignup).filter(PendingSignup.created_at < before).delete(
            synchronize_session=False
        )
        self._commit()
        return deleted

    def promote_to_user(self, pending: PendingSignup) -> User:
        """Create the verified user from a pending signup and consume the pending record atomically.

        A confirmation that loses the race against another confirmation for the same
        phone hits the users.phone unique constraint and is reported as an expired
        signup session, never as a second account.
        """
        user = User(
            name=pending.name,
            email=pending.email,
            phone=pending.phone,
            password_hash=pending.password_hash,
            verified=True,
            created_at=datetime.now(timezone.utc),
        )
        phone = pending.phone
        self.db.add(user)
        self.delete_pending(phone, commit=False)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self.find_user_by_phone(phone) is not None:
                raise SessionExpiredError()
            raise ConflictError(_conflict_message(e))
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("[Store] promote failed for pending signup")
            raise InternalError()
        self.db.refresh(user)
        return user


def _conflict_message(e: IntegrityError) -> str:
    msg = str(getattr(e, "orig", None) or e).lower()
    if "email" in msg:
        return "Email already in use by another account"
    if "phone" in msg:
        return "Phone number already in use by another account"
    return "User already exists"
