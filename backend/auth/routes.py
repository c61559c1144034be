from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from auth.models import AuthResponse, LoginRequest, SignupRequest, UserResponse
from auth.utils import cookie_name, create_token, get_current_user
from config import settings
from deps import get_store
from services import account_service
from services.errors import GlucoTrackError
from services.rate_limit_service import RateLimitRule, enforce_rate_limit
from stores import AppUser, HealthStore, UserRecord
from stores.base import normalize_email

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_ip(request: Request) -> str:
    return (request.client.host if request.client else "") or "unknown"


def _set_session_cookie(response: Response, token: str, *, max_age_seconds: int) -> None:
    samesite = (settings.AUTH_COOKIE_SAMESITE or "lax").strip().lower()
    if samesite not in {"strict", "lax", "none"}:
        samesite = "lax"
    response.set_cookie(
        key=cookie_name(),
        value=token,
        httponly=bool(settings.AUTH_COOKIE_HTTPONLY),
        secure=bool(settings.AUTH_COOKIE_SECURE),
        samesite=samesite,  # type: ignore[arg-type]
        domain=settings.AUTH_COOKIE_DOMAIN,
        path=settings.AUTH_COOKIE_PATH or "/",
        max_age=max(int(max_age_seconds), 1),
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=cookie_name(),
        domain=settings.AUTH_COOKIE_DOMAIN,
        path=settings.AUTH_COOKIE_PATH or "/",
    )


def _check_rate_limit(request: Request, *, endpoint: str, limit: int, window_seconds: int, email: str) -> None:
    allowed, retry_after = enforce_rate_limit(
        rule=RateLimitRule(endpoint=endpoint, limit=limit, window_seconds=window_seconds),
        scope_key=f"{_client_ip(request)}:{normalize_email(email)}",
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )


def _start_session(response: Response, user: UserRecord) -> AuthResponse:
    token = create_token(user.id)
    _set_session_cookie(response, token, max_age_seconds=max(int(settings.JWT_EXPIRY_HOURS), 1) * 3600)
    return AuthResponse(user=UserResponse.model_validate(user.public()), access_token=token)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(req: SignupRequest, request: Request, response: Response, store: HealthStore = Depends(get_store)):
    _check_rate_limit(
        request,
        endpoint="/api/auth/signup",
        limit=settings.RATE_LIMIT_AUTH_SIGNUP_ATTEMPTS,
        window_seconds=settings.RATE_LIMIT_AUTH_SIGNUP_WINDOW_SECONDS,
        email=req.email,
    )
    try:
        user = account_service.signup(store, req.email, req.password, req.name)
    except GlucoTrackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _start_session(response, user)


@router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, request: Request, response: Response, store: HealthStore = Depends(get_store)):
    _check_rate_limit(
        request,
        endpoint="/api/auth/login",
        limit=settings.RATE_LIMIT_AUTH_LOGIN_ATTEMPTS,
        window_seconds=settings.RATE_LIMIT_AUTH_LOGIN_WINDOW_SECONDS,
        email=req.email,
    )
    try:
        user = account_service.authenticate(store, req.email, req.password)
    except GlucoTrackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _start_session(response, user)


@router.get("/me", response_model=UserResponse)
def me(user: AppUser = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.post("/logout")
def logout(response: Response):
    _clear_session_cookie(response)
    return {"status": "ok"}
