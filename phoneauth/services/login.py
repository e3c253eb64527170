"""Login flow: OTP challenge for an existing account, then a session token."""
import logging

from phoneauth.errors import InvalidCodeError, NotFoundError, UpstreamError
from phoneauth.models.user import User
from phoneauth.services.auth import TokenService
from phoneauth.services.otp_gateway import GatewayError, OtpGateway
from phoneauth.services.signup import OTP_SENT_MESSAGE, require_fields
from phoneauth.services.store import CredentialStore

log = logging.getLogger("uvicorn.error")


class LoginService:
    def __init__(self, store: CredentialStore, gateway: OtpGateway, tokens: TokenService):
        self.store = store
        self.gateway = gateway
        self.tokens = tokens

    def challenge(self, phone: str) -> str:
        require_fields("Phone number required", phone=phone)
        # Login never creates accounts; unknown phones stop before the gateway is called.
        if self.store.find_user_by_phone(phone) is None:
            raise NotFoundError()
        try:
            self.gateway.request_code(phone)
        except GatewayError as e:
            log.warning("[Login] OTP request failed for phone=%s: %s", phone, e)
            raise UpstreamError("Failed to send OTP")
        return OTP_SENT_MESSAGE

    def verify(self, phone: str, code: str) -> tuple[str, User]:
        require_fields("Phone and code required", phone=phone, code=code)
        try:
            valid = self.gateway.check_code(phone, code)
        except GatewayError as e:
            log.warning("[Login] OTP check failed for phone=%s: %s", phone, e)
            raise UpstreamError("Failed to verify OTP")
        if not valid:
            raise InvalidCodeError()
        user = self.store.find_user_by_phone(phone)
        if user is None:
            raise NotFoundError()
        log.info("[Login] session issued user_id=%s", user.id)
        return self.tokens.issue(user.id, user.phone), user
