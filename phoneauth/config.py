"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of phoneauth/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

DEFAULT_OTP_API_URL = "https://otp.dynamictech.gleeze.com"


class Settings(BaseSettings):
    app_name: str = "Phone Auth"
    debug: bool = False

    # Required: no default, the service must not start without them.
    database_url: str
    jwt_secret: str

    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @field_validator("database_url")
    @classmethod
    def database_url_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("DATABASE_URL must not be empty")
        return v

    otp_api_url: str = DEFAULT_OTP_API_URL
    otp_timeout_seconds: float = 10.0

    @field_validator("otp_api_url", mode="before")
    @classmethod
    def strip_otp_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/") or DEFAULT_OTP_API_URL

    pending_signup_expire_minutes: int = 30
    pending_cleanup_enabled: bool = True
    pending_cleanup_interval_minutes: int = 15

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
