"""Pending signup data: the user is created only after the phone is confirmed."""
from sqlalchemy import Column, DateTime, String

from phoneauth.database import Base


class PendingSignup(Base):
    __tablename__ = "pending_signups"

    # One staged attempt per phone; a new signup for the same phone replaces it.
    phone = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
