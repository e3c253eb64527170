"""Profile edits for an authenticated user: name and email only."""
from datetime import datetime, timezone

from phoneauth.errors import ConflictError, NotFoundError
from phoneauth.models.user import User
from phoneauth.services.signup import require_fields
from phoneauth.services.store import CredentialStore


def update_profile(store: CredentialStore, user_id: str, name: str, email: str) -> User:
    """Apply name/email to the user behind the token. Phone and password never change here."""
    require_fields("Name and email are required", name=name, email=email)
    if store.find_user_by_email_excluding(email, exclude_id=user_id) is not None:
        raise ConflictError("Email already in use by another account")
    matched = store.update_user(
        user_id,
        {"name": name, "email": email, "updated_at": datetime.now(timezone.utc)},
    )
    if not matched:
        raise NotFoundError()
    user = store.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return user
