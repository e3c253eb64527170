"""Delete pending signups that were never confirmed within the expiry window."""
import logging
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session, sessionmaker

from phoneauth.services.store import CredentialStore

log = logging.getLogger("uvicorn.error")


def purge_expired_pending(db: Session, expire_minutes: int, now: datetime | None = None) -> int:
    threshold = (now or datetime.now(timezone.utc)) - timedelta(minutes=expire_minutes)
    deleted = CredentialStore(db).delete_expired_pending(threshold)
    if deleted:
        log.info("[Cleanup] deleted %d expired pending signup(s).", deleted)
    return deleted


def run_pending_cleanup_job(session_factory: sessionmaker, expire_minutes: int) -> None:
    """Scheduler entry point: one session per run."""
    db: Session = session_factory()
    try:
        purge_expired_pending(db, expire_minutes)
    finally:
        db.close()
