"""Signup state machine: NoAccount -> PendingVerification -> Confirmed.

initiate() stages a PendingSignup once the gateway has accepted to send a code;
confirm() checks the code, promotes the pending record to a verified User and issues
a session token. The pending record is the only guard against double creation: once
it is consumed, replayed confirmations fail with SessionExpiredError.
"""
import logging
from datetime import datetime, timedelta, timezone

from phoneauth.errors import (
    ConflictError,
    InvalidCodeError,
    SessionExpiredError,
    UpstreamError,
    ValidationError,
)
from phoneauth.models.pending_signup import PendingSignup
from phoneauth.models.user import User
from phoneauth.services.auth import TokenService, get_password_hash
from phoneauth.services.otp_gateway import GatewayError, OtpGateway
from phoneauth.services.store import CredentialStore

log = logging.getLogger("uvicorn.error")

OTP_SENT_MESSAGE = "OTP sent to your WhatsApp"


def require_fields(message: str, **fields: str | None) -> None:
    if any(not (v or "").strip() for v in fields.values()):
        raise ValidationError(message)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SignupService:
    def __init__(
        self,
        store: CredentialStore,
        gateway: OtpGateway,
        tokens: TokenService,
        pending_ttl: timedelta | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.tokens = tokens
        self.pending_ttl = pending_ttl

    def _is_expired(self, pending: PendingSignup, now: datetime) -> bool:
        if self.pending_ttl is None:
            return False
        return as_utc(pending.created_at) + self.pending_ttl <= now

    def initiate(self, name: str, email: str, phone: str, password: str) -> str:
        require_fields("All fields required", name=name, email=email, phone=phone, password=password)
        if self.store.user_exists(email=email, phone=phone):
            raise ConflictError("User already exists")

        password_hash = get_password_hash(password)
        try:
            self.gateway.request_code(phone)
        except GatewayError as e:
            log.warning("[Signup] OTP request failed for phone=%s: %s", phone, e)
            raise UpstreamError("Failed to send OTP")

        self.store.upsert_pending(
            phone,
            {
                "name": name,
                "email": email,
                "password_hash": password_hash,
                "created_at": datetime.now(timezone.utc),
            },
        )
        log.info("[Signup] pending signup staged for phone=%s", phone)
        return OTP_SENT_MESSAGE

    def resend(self, phone: str) -> str:
        """Send a fresh code for a signup that is still pending and restart its expiry clock."""
        require_fields("Phone number required", phone=phone)
        pending = self.store.find_pending(phone)
        now = datetime.now(timezone.utc)
        if pending is None or self._is_expired(pending, now):
            raise SessionExpiredError()
        try:
            self.gateway.request_code(phone)
        except GatewayError as e:
            log.warning("[Signup] OTP resend failed for phone=%s: %s", phone, e)
            raise UpstreamError("Failed to send OTP")
        self.store.touch_pending(phone, now)
        return OTP_SENT_MESSAGE

    def confirm(self, phone: str, code: str) -> tuple[str, User]:
        require_fields("Phone and code required", phone=phone, code=code)
        try:
            valid = self.gateway.check_code(phone, code)
        except GatewayError as e:
            log.warning("[Signup] OTP check failed for phone=%s: %s", phone, e)
            raise UpstreamError("Failed to verify OTP")
        if not valid:
            raise InvalidCodeError()

        pending = self.store.find_pending(phone)
        if pending is None or self._is_expired(pending, datetime.now(timezone.utc)):
            raise SessionExpiredError()

        user = self.store.promote_to_user(pending)
        token = self.tokens.issue(user.id, user.phone)
        log.info("[Signup] account confirmed user_id=%s phone=%s", user.id, user.phone)
        return token, user
