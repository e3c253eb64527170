from phoneauth.schemas.auth import (
    CurrentUserResponse,
    MessageResponse,
    PhoneRequest,
    ProfileUpdate,
    ProfileUpdateResponse,
    SignupRequest,
    TokenResponse,
    UserResponse,
    UserSummary,
    VerifyCodeRequest,
)
