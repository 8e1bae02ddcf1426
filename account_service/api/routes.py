"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import pages
from ..config import get_settings
from ..domain.account import Account
from ..domain.errors import ErrorKind, Failure
from ..domain.service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_FAILURE_STATUS = {
    ErrorKind.validation: status.HTTP_400_BAD_REQUEST,
    ErrorKind.conflict: status.HTTP_400_BAD_REQUEST,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.forbidden: status.HTTP_403_FORBIDDEN,
    ErrorKind.unauthorized: status.HTTP_401_UNAUTHORIZED,
}

_GOOGLE_LOGIN_USER = {"email": "user@gmail.com", "name": "Google User", "role": "customer"}
_GOOGLE_SIGNUP_USER = {"email": "newuser@gmail.com", "name": "New Google User", "role": "customer"}


class UserResponse(BaseModel):
    """Serialised representation of an `Account` aggregate."""

    id: str
    name: str
    email: str
    role: str
    is_verified: bool = Field(alias="isVerified")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_domain(cls, account: Account) -> "UserResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            id=account.account_id,
            name=account.name,
            email=account.email,
            role=account.role.value,
            is_verified=account.is_verified,
        )


class RegisterRequest(BaseModel):
    """Registration payload; presence and format are checked by the workflow."""

    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserResponse
    email_sent: bool = Field(alias="emailSent")
    email_error: str | None = Field(default=None, alias="emailError")

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    role: str | None = None


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: UserResponse


class GoogleTokenRequest(BaseModel):
    token: str | None = None


class ContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    message: str | None = None


settings = get_settings()


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _failure_response(failure: Failure) -> JSONResponse:
    return _error(_FAILURE_STATUS.get(failure.kind, status.HTTP_500_INTERNAL_SERVER_ERROR), failure.message)


@router.post("/register", response_model=RegisterResponse)
def register(
    payload: RegisterRequest,
    service: AccountService = Depends(get_service),
) -> RegisterResponse | JSONResponse:
    """Create an unverified account and send its verification email."""
    try:
        result = service.register(payload.name, payload.email, payload.password, payload.role)
    except Exception:
        logger.exception("registration failed unexpectedly")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Registration failed")
    if isinstance(result, Failure):
        return _failure_response(result)
    return RegisterResponse(
        user=UserResponse.from_domain(result.account),
        email_sent=result.email_sent,
        email_error=result.email_error,
    )


@router.post("/auth/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_service),
) -> LoginResponse | JSONResponse:
    """Authenticate an account by email, role and password."""
    try:
        result = service.login(payload.email, payload.password, payload.role)
    except Exception:
        logger.exception("login failed unexpectedly")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Login failed")
    if isinstance(result, Failure):
        return _failure_response(result)
    return LoginResponse(user=UserResponse.from_domain(result))


@router.get("/auth/verify", response_class=HTMLResponse)
def verify_email(
    email: str | None = Query(default=None),
    service: AccountService = Depends(get_service),
) -> HTMLResponse:
    """Confirm ownership of an email address from the link sent at registration."""
    frontend_url = settings.frontend_url
    try:
        result = service.verify_email(email)
    except Exception:
        logger.exception("verification failed unexpectedly")
        return pages.failure_page(
            title="Verification Error",
            message="An error occurred during verification. Please try again later.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            frontend_url=frontend_url,
        )
    if isinstance(result, Failure):
        if result.kind is ErrorKind.not_found:
            return pages.failure_page(
                title="User Not Found",
                message=result.message,
                status_code=status.HTTP_404_NOT_FOUND,
                frontend_url=frontend_url,
            )
        return pages.failure_page(
            title="Verification Failed",
            message=result.message,
            status_code=status.HTTP_400_BAD_REQUEST,
            frontend_url=frontend_url,
        )
    if result.already_verified:
        return pages.already_verified_page(frontend_url)
    return pages.verified_page(result.account, frontend_url)


@router.post("/auth/google")
def google_login(payload: GoogleTokenRequest) -> JSONResponse:
    """Unauthenticated stand-in for Google sign-in; the token is not verified."""
    return _google_stub(payload.token, _GOOGLE_LOGIN_USER)


@router.post("/auth/google-signup")
def google_signup(payload: GoogleTokenRequest) -> JSONResponse:
    """Unauthenticated stand-in for Google sign-up; nothing is persisted."""
    return _google_stub(payload.token, _GOOGLE_SIGNUP_USER)


def _google_stub(token: str | None, user: dict[str, str]) -> JSONResponse:
    if not token:
        return _error(status.HTTP_400_BAD_REQUEST, "Google token is required")
    logger.info("google token received: %s...", token[:20])
    return JSONResponse(content={"success": True, "role": user["role"], "user": dict(user)})


@router.get("/auth/test-verify/{email}")
def test_verify(email: str, service: AccountService = Depends(get_service)) -> JSONResponse:
    """Diagnostic lookup reporting whether an account exists and its verification flag."""
    try:
        account = service.lookup(email)
    except Exception as exc:
        logger.exception("diagnostic lookup failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    if account is None:
        return JSONResponse(content={"success": False, "message": "User not found", "email": email})
    return JSONResponse(
        content={
            "success": True,
            "message": "User found",
            "user": {
                "email": account.email,
                "name": account.name,
                "role": account.role.value,
                "isVerified": account.is_verified,
                "id": account.account_id,
            },
        }
    )


@router.post("/contact")
def contact(payload: ContactRequest, service: AccountService = Depends(get_service)) -> JSONResponse:
    """Store a contact-form message and relay it by email."""
    try:
        result = service.submit_contact(payload.name, payload.email, payload.message)
    except Exception as exc:
        logger.exception("contact submission failed unexpectedly")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    if isinstance(result, Failure):
        return _failure_response(result)
    return JSONResponse(content={"success": True})


@router.get("/health", tags=["health"])
def health() -> dict[str, str | int]:
    """Return a liveness payload for monitoring."""
    return {
        "status": "OK",
        "message": "Backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "port": settings.http_port,
    }
