"""Authentication endpoints for issuing JWTs."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Literal
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.core.config import Settings, get_settings
from politirate.models import UserRole
from politirate.schemas import SignupRequest, UserRead
from politirate.services.users import (
    DuplicateEmailError,
    InvalidCredentialsError,
    UserNotFoundError,
    authenticate_user,
    get_user,
    register_user,
)

LOGGER = logging.getLogger(__name__)

RoleName = Literal["ADMIN", "USER"]

router = APIRouter()
security_scheme = HTTPBearer(auto_error=True)
optional_security_scheme = HTTPBearer(auto_error=False)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class SignupResponse(BaseModel):
    user: UserRead
    tokens: TokenResponse


class TokenPayload(BaseModel):
    sub: str
    role: RoleName
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    role: RoleName
    token_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class RefreshTokenStore:
    """In-memory store tracking active and blacklisted refresh tokens."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._blacklist: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            if token_id in self._blacklist:
                return False
            return self._active.get(subject) == token_id

    def blacklist(self, token_id: str) -> None:
        with self._lock:
            self._blacklist.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._blacklist.clear()


refresh_token_store = RefreshTokenStore()


def _create_token(
    *,
    subject: str,
    role: RoleName,
    settings: Settings,
    expires_delta: timedelta,
    token_type: Literal["access", "refresh"],
) -> tuple[str, str]:
    now = datetime.now(UTC)
    token_id = uuid4().hex
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "role": role,
        "type": token_type,
        "jti": token_id,
    }
    encoded = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded, token_id


def issue_tokens(*, subject: str, role: RoleName, settings: Settings) -> TokenResponse:
    """Issue an access/refresh pair and register the refresh token as current."""

    access_token, _ = _create_token(
        subject=subject,
        role=role,
        settings=settings,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        token_type="access",
    )
    refresh_token, refresh_id = _create_token(
        subject=subject,
        role=role,
        settings=settings,
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
        token_type="refresh",
    )
    refresh_token_store.mark_active(subject, refresh_id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    try:
        return TokenPayload(**payload)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def _authenticated_user(request: Request, token: str) -> AuthenticatedUser:
    payload = _decode_token(token=token, settings=get_settings())
    if payload.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    request.state.user_id = payload.sub
    request.state.user_role = payload.role
    return AuthenticatedUser(user_id=payload.sub, role=payload.role, token_id=payload.jti)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> AuthenticatedUser:
    return _authenticated_user(request, credentials.credentials)


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security_scheme),
) -> AuthenticatedUser | None:
    """Resolve the caller from a valid bearer token; anonymous otherwise.

    An expired or malformed token on a public route is treated like no token.
    """

    if credentials is None:
        return None
    try:
        return _authenticated_user(request, credentials.credentials)
    except HTTPException as exc:
        if exc.status_code != status.HTTP_401_UNAUTHORIZED:
            raise
        LOGGER.info("ignoring unusable bearer token on optional auth", extra={"path": request.url.path})
        return None


def require_role(*roles: RoleName) -> Callable[..., AuthenticatedUser]:
    allowed_roles: set[str] = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and sign in",
)
def signup(payload: SignupRequest, session: Session = Depends(get_db_session)) -> SignupResponse:
    if "@" not in payload.email:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid email address")
    try:
        user = register_user(session, **payload.model_dump())
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    tokens = issue_tokens(subject=user.id, role=user.role.value, settings=get_settings())
    return SignupResponse(user=UserRead.model_validate(user), tokens=tokens)


@router.post("/login", response_model=TokenResponse, summary="Issue JWT access tokens")
def login(request: LoginRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    if "@" not in request.email:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid email address")
    try:
        user = authenticate_user(session, email=request.email, password=request.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return issue_tokens(subject=user.id, role=user.role.value, settings=get_settings())


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(request: RefreshRequest) -> TokenResponse:
    settings = get_settings()
    payload = _decode_token(token=request.refresh_token, settings=settings)
    if payload.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(payload.sub, payload.jti):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked")

    refresh_token_store.blacklist(payload.jti)
    return issue_tokens(subject=payload.sub, role=payload.role, settings=settings)


@router.get("/me", response_model=UserRead, summary="Return the signed-in account")
def me(
    user: AuthenticatedUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> UserRead:
    try:
        account = get_user(session, user.user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserRead.model_validate(account)


__all__ = [
    "AuthenticatedUser",
    "RefreshTokenStore",
    "TokenResponse",
    "get_current_user",
    "get_optional_user",
    "issue_tokens",
    "refresh_token_store",
    "require_role",
    "router",
]
