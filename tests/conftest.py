"""
Pytest configuration and fixtures for the phone auth service.
"""

import os

# Required settings must exist before phoneauth.main builds its module-level app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing"
os.environ["PENDING_CLEANUP_ENABLED"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from phoneauth.config import Settings
from phoneauth.database import Base
from phoneauth.dependencies import get_otp_gateway
from phoneauth.main import create_app
from phoneauth.services.auth import TokenService
from phoneauth.services.login import LoginService
from phoneauth.services.otp_gateway import GatewayError
from phoneauth.services.signup import SignupService
from phoneauth.services.store import CredentialStore

TEST_SECRET = "test-secret-key-for-testing"
VALID_CODE = "123456"


class FakeGateway:
    """Stands in for the OTP provider; records every call."""

    def __init__(self):
        self.sent = []
        self.checked = []
        self.accept_send = True
        self.crash = None
        self.valid_codes = {VALID_CODE}

    def request_code(self, phone):
        self.sent.append(phone)
        if self.crash is not None:
            raise self.crash
        if not self.accept_send:
            raise GatewayError("provider refused")

    def check_code(self, phone, code):
        self.checked.append((phone, code))
        return code in self.valid_codes


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        pending_cleanup_enabled=False,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(settings, gateway):
    app = create_app(settings)
    app.dependency_overrides[get_otp_gateway] = lambda: gateway
    Base.metadata.create_all(bind=app.state.engine)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return CredentialStore(db_session)


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture
def signups(store, gateway, tokens):
    return SignupService(store, gateway, tokens, pending_ttl=timedelta(minutes=30))


@pytest.fixture
def logins(store, gateway, tokens):
    return LoginService(store, gateway, tokens)


@pytest.fixture
def registered_user(signups):
    """A confirmed account created through the signup flow."""
    signups.initiate(name="Alice", email="alice@example.com", phone="+15550001", password="pw-alice")
    _, user = signups.confirm("+15550001", VALID_CODE)
    return user
