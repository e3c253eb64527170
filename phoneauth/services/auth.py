"""Password hashing and session tokens (issue, validate, bearer parsing)."""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from phoneauth.errors import InvalidTokenError, MalformedTokenError, MissingTokenError

BEARER_PATTERN = re.compile(r"Bearer (\S+)")


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt()).decode("utf-8")


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    phone: str


class TokenService:
    """Signs and verifies bearer tokens with the process-wide secret."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_days: int = 7):
        if not secret:
            raise ValueError("token secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = timedelta(days=expire_days)

    def issue(self, user_id: str, phone: str, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        # PyJWT expects "sub" to be a string
        payload = {
            "sub": str(user_id),
            "phone": phone,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        raw = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return raw if isinstance(raw, str) else raw.decode("utf-8")

    def validate(self, token: str, now: datetime | None = None) -> TokenClaims:
        """Decode and verify a token. The caller still has to re-resolve the user by id."""
        if not token:
            raise MissingTokenError()
        options = {"require": ["sub", "exp"]}
        try:
            if now is None:
                payload = jwt.decode(token, self.secret, algorithms=[self.algorithm], options=options)
            else:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={**options, "verify_exp": False},
                )
                if now.timestamp() >= payload["exp"]:
                    raise jwt.ExpiredSignatureError("Signature has expired")
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except jwt.PyJWTError:
            raise InvalidTokenError()
        user_id = payload.get("sub")
        phone = payload.get("phone")
        if not isinstance(user_id, str) or not user_id or not isinstance(phone, str):
            raise InvalidTokenError()
        return TokenClaims(user_id=user_id, phone=phone)


def parse_bearer(header_value: str | None) -> str:
    """Extract the token from an Authorization header of the exact form 'Bearer <token>'."""
    if header_value is None or not header_value.strip():
        raise MissingTokenError()
    match = BEARER_PATTERN.fullmatch(header_value)
    if not match:
        raise MalformedTokenError()
    return match.group(1)
