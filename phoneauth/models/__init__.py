"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from phoneauth.models.user import User
from phoneauth.models.pending_signup import PendingSignup

__all__ = [
    "User",
    "PendingSignup",
]
