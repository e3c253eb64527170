"""OTP gateway client: asks the external provider to send and check one-time codes.

The provider owns code generation, delivery, expiry and attempt limits. It answers
both calls with JSON carrying a boolean "success". One attempt per call, no retries.
"""
import logging

import httpx

log = logging.getLogger("uvicorn.error")


class GatewayError(Exception):
    """The provider could not be reached, answered garbage, or refused to send a code."""


class OtpGateway:
    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _call(self, path: str, params: dict[str, str]) -> dict:
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                r = client.get(path, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("[OTP] %s transport error: %s: %s", path, type(e).__name__, e)
            raise GatewayError(f"OTP provider unreachable: {type(e).__name__}")
        try:
            body = r.json()
        except ValueError:
            log.warning("[OTP] %s returned non-JSON body: status=%s body=%s", path, r.status_code, r.text[:200])
            raise GatewayError("OTP provider returned an unreadable response")
        if not isinstance(body, dict):
            raise GatewayError("OTP provider returned an unexpected response")
        return body

    def request_code(self, phone: str) -> None:
        """Ask the provider to deliver a code to this phone. Raises GatewayError unless it reports success."""
        body = self._call("/api/sendotp", {"number": phone})
        if body.get("success") is not True:
            log.warning("[OTP] send refused: %s", body.get("message") or body.get("error") or "no reason given")
            raise GatewayError("OTP provider did not accept the send request")

    def check_code(self, phone: str, code: str) -> bool:
        """True only if the provider reports the code as valid for this phone."""
        body = self._call("/api/verifyotp", {"number": phone, "code": code})
        return body.get("success") is True
