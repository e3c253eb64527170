"""Phone Auth – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from phoneauth.config import Settings, get_settings
from phoneauth.database import Base, build_engine, build_session_factory
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from phoneauth.models import User, PendingSignup  # noqa: F401
from phoneauth.errors import register_exception_handlers
from phoneauth.routers import auth, users
from phoneauth.services.auth import TokenService
from phoneauth.services.otp_gateway import OtpGateway

log = logging.getLogger("uvicorn.error")


def _start_scheduler(app: FastAPI, settings: Settings) -> None:
    if not settings.pending_cleanup_enabled:
        return
    from apscheduler.schedulers.background import BackgroundScheduler
    from phoneauth.services.pending_cleanup import run_pending_cleanup_job

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_pending_cleanup_job,
        "interval",
        minutes=settings.pending_cleanup_interval_minutes,
        args=[app.state.session_factory, settings.pending_signup_expire_minutes],
    )
    scheduler.start()
    app.state.scheduler = scheduler


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. Settings are loaded here; a missing JWT_SECRET or DATABASE_URL aborts startup."""
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.jwt_expire_days,
    )
    app.state.otp_gateway = OtpGateway(settings.otp_api_url, timeout=settings.otp_timeout_seconds)
    app.state.scheduler = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)

    @app.on_event("startup")
    def startup():
        Base.metadata.create_all(bind=app.state.engine)
        log.info("[OTP] gateway=%s timeout=%ss", settings.otp_api_url, settings.otp_timeout_seconds)
        _start_scheduler(app, settings)

    @app.on_event("shutdown")
    def shutdown():
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)

    @app.get("/")
    def root():
        return {"app": settings.app_name, "status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
