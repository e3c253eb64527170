"""Signup and login endpoints."""
from fastapi import APIRouter, Depends

from phoneauth.schemas.auth import (
    MessageResponse,
    PhoneRequest,
    SignupRequest,
    TokenResponse,
    UserSummary,
    VerifyCodeRequest,
)
from phoneauth.dependencies import get_login_service, get_signup_service
from phoneauth.services.login import LoginService
from phoneauth.services.signup import SignupService

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/signup", response_model=MessageResponse)
def signup(data: SignupRequest, signups: SignupService = Depends(get_signup_service)):
    message = signups.initiate(
        name=data.name,
        email=str(data.email),
        phone=data.phone,
        password=data.password,
    )
    return MessageResponse(message=message)


@router.post("/verify-signup", response_model=TokenResponse)
def verify_signup(data: VerifyCodeRequest, signups: SignupService = Depends(get_signup_service)):
    token, user = signups.confirm(data.phone, data.code)
    return TokenResponse(token=token, user=UserSummary.model_validate(user))


@router.post("/resend-signup", response_model=MessageResponse)
def resend_signup(data: PhoneRequest, signups: SignupService = Depends(get_signup_service)):
    """Send a new code for a signup that has not been confirmed yet."""
    return MessageResponse(message=signups.resend(data.phone))


@router.post("/login", response_model=MessageResponse)
def login(data: PhoneRequest, logins: LoginService = Depends(get_login_service)):
    return MessageResponse(message=logins.challenge(data.phone))


@router.post("/verify-login", response_model=TokenResponse)
def verify_login(data: VerifyCodeRequest, logins: LoginService = Depends(get_login_service)):
    token, user = logins.verify(data.phone, data.code)
    return TokenResponse(token=token, user=UserSummary.model_validate(user))
