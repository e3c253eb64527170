"""Auth request and response schemas."""
import re
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PHONE_PATTERN = re.compile(r"\+?[0-9][0-9 ()\-]*")
# Matches the String(50) phone columns on users and pending_signups.
PHONE_MAX_LENGTH = 50


def _clean_phone(value: str) -> str:
    s = (value or "").strip()
    if not s:
        raise ValueError("Phone number is required.")
    if len(s) > PHONE_MAX_LENGTH:
        raise ValueError(f"Phone number cannot exceed {PHONE_MAX_LENGTH} characters.")
    if not PHONE_PATTERN.fullmatch(s):
        raise ValueError("Phone number may only contain digits, spaces, dashes, parentheses and a leading +.")
    return s


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class SignupRequest(BaseModel):
    # No model-wide stripping: the password is hashed exactly as typed.
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str
    password: str = Field(min_length=1)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _clean_phone(v)


class PhoneRequest(_Request):
    """Login challenge or signup resend: only the phone is needed."""
    phone: str

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _clean_phone(v)


class VerifyCodeRequest(_Request):
    phone: str
    code: str = Field(min_length=1, max_length=16)

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _clean_phone(v)


class ProfileUpdate(_Request):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    phone: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    verified: bool = True


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TokenResponse(BaseModel):
    success: bool = True
    token: str
    user: UserSummary


class CurrentUserResponse(BaseModel):
    success: bool = True
    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    success: bool = True
    message: str = "Profile updated successfully"
    user: UserResponse
