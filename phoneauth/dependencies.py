"""Shared dependencies: DB session, store, gateway, services, current user."""
from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from phoneauth.config import Settings
from phoneauth.database import get_db
from phoneauth.errors import NotFoundError
from phoneauth.models.user import User
from phoneauth.services.auth import TokenClaims, TokenService, parse_bearer
from phoneauth.services.login import LoginService
from phoneauth.services.otp_gateway import OtpGateway
from phoneauth.services.signup import SignupService
from phoneauth.services.store import CredentialStore

# Raw header so that "missing" and "not Bearer <token>" can be told apart.
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_otp_gateway(request: Request) -> OtpGateway:
    return request.app.state.otp_gateway


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_signup_service(
    store: CredentialStore = Depends(get_store),
    gateway: OtpGateway = Depends(get_otp_gateway),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_from_app),
) -> SignupService:
    return SignupService(
        store,
        gateway,
        tokens,
        pending_ttl=timedelta(minutes=settings.pending_signup_expire_minutes),
    )


def get_login_service(
    store: CredentialStore = Depends(get_store),
    gateway: OtpGateway = Depends(get_otp_gateway),
    tokens: TokenService = Depends(get_token_service),
) -> LoginService:
    return LoginService(store, gateway, tokens)


def get_token_claims(
    authorization: str | None = Depends(authorization_header),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    return tokens.validate(parse_bearer(authorization))


def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    store: CredentialStore = Depends(get_store),
) -> User:
    # A valid signature does not mean the account still exists.
    user = store.find_user_by_id(claims.user_id)
    if not user:
        raise NotFoundError()
    return user
