"""
Delete pending signups older than PENDING_SIGNUP_EXPIRE_MINUTES.
Run: python scripts/purge_pending_signups.py (from project root)
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from phoneauth.config import get_settings
from phoneauth.database import build_engine, build_session_factory
from phoneauth.services.pending_cleanup import purge_expired_pending


def main():
    settings = get_settings()
    engine = build_engine(settings.database_url)
    db = build_session_factory(engine)()
    try:
        deleted = purge_expired_pending(db, settings.pending_signup_expire_minutes)
        print(f"Deleted {deleted} expired pending signup(s).")
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
