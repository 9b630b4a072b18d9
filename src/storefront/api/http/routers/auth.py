"""Customer accounts: registration, email verification, login and profile."""

from datetime import datetime, timedelta
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import (
    auth_cookie_settings,
    enforce_origin,
    get_current_user,
    get_db_session,
    get_email_service,
    get_jwt_service,
    get_login_attempts,
    get_optional_user,
    get_security_logger,
    get_user_repository,
    require_csrf,
)
from src.storefront.api.http.middleware.limiter import rate_limit
from src.storefront.api.http.payloads import screen
from src.storefront.core.security import generate_csrf_token, get_client_ip, mask_cpf
from src.storefront.core.services.auth import (
    JwtService,
    LoginAttemptTracker,
    hash_password,
    verify_password,
)
from src.storefront.core.services.email import EmailService, send_safely
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation import (
    EmailVerificationSchema,
    PasswordResetRequestSchema,
    PasswordResetSchema,
    ResendVerificationSchema,
    UserLoginSchema,
    UserRegistrationSchema,
    UserUpdateSchema,
)
from src.storefront.entities.core.auth_token import AuthTokenRepository, TokenPurpose
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.runtime.context import get_config

main_config = get_config()

router = APIRouter(prefix="/auth", tags=["auth"])

_auth_limit = rate_limit(
    requests=main_config.rate_limiter.auth_requests,
    window_ms=main_config.rate_limiter.window_ms,
)


class UserProfile(BaseModel):
    """What a signed-in customer sees about their own account."""

    id: str
    name: str
    email: str
    phone: str | None = None
    cpf: str | None = None
    birth_date: str | None = None
    gender: str | None = None
    is_admin: bool
    email_verified: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            cpf=mask_cpf(user.cpf),
            birth_date=user.birth_date,
            gender=user.gender,
            is_admin=user.is_admin,
            email_verified=user.email_verified,
            created_at=user.created_at,
        )


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    user: UserProfile
    token: str
    expires_in: int


@router.post(
    "/register",
    status_code=201,
    response_model=UserProfile,
    dependencies=[Depends(_auth_limit), Depends(enforce_origin)],
)
async def register(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> UserProfile:
    """Create a customer account and email a verification link."""
    data = screen(UserRegistrationSchema, request, payload, security_logger)
    if users.email_exists(data.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    config = get_config()
    user = users.create(
        User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password, config.security.bcrypt_rounds),
            phone=data.phone,
            cpf=data.cpf,
            birth_date=data.birth_date,
            gender=data.gender,
        )
    )
    token = AuthTokenRepository(db).issue(
        user.id,
        TokenPurpose.EMAIL_VERIFICATION,
        timedelta(hours=config.security.verification_token_hours),
    )
    db.commit()

    security_logger.log(
        SecurityEventType.USER_CREATED,
        SecurityLevel.INFO,
        request,
        {"email": user.email},
        user_id=user.id,
        user_email=user.email,
    )
    await send_safely(
        email_service.send_verification_email(user.email, user.name, token.token),
        f"verification:{user.id}",
    )
    return UserProfile.from_user(user)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MessageResponse:
    data = screen(
        EmailVerificationSchema,
        request,
        payload,
        security_logger,
        skip_fields=frozenset({"token"}),
    )
    tokens = AuthTokenRepository(db)
    token = tokens.find_usable(data.token, TokenPurpose.EMAIL_VERIFICATION)
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid or expired verification token")

    users.mark_email_verified(token.user_id)
    tokens.mark_used(token.id)
    db.commit()
    logger.bind(user_id=token.user_id).info("Email verified")
    return MessageResponse(message="Email verified")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    dependencies=[Depends(_auth_limit)],
)
async def resend_verification(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MessageResponse:
    """Send a fresh verification link; answers the same whether or not the account exists."""
    data = screen(ResendVerificationSchema, request, payload, security_logger)
    user = users.get_by_email(data.email)
    if user is not None and not user.email_verified:
        token = AuthTokenRepository(db).issue(
            user.id,
            TokenPurpose.EMAIL_VERIFICATION,
            timedelta(hours=get_config().security.verification_token_hours),
        )
        db.commit()
        await send_safely(
            email_service.send_verification_email(user.email, user.name, token.token),
            f"verification:{user.id}",
        )
    return MessageResponse(message="If the account exists, a verification email was sent")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(_auth_limit)],
)
async def forgot_password(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    email_service: EmailService = Depends(get_email_service),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MessageResponse:
    data = screen(PasswordResetRequestSchema, request, payload, security_logger)
    user = users.get_by_email(data.email)
    if user is not None and user.is_active:
        token = AuthTokenRepository(db).issue(
            user.id,
            TokenPurpose.PASSWORD_RESET,
            timedelta(hours=get_config().security.reset_token_hours),
        )
        db.commit()
        await send_safely(
            email_service.send_password_reset_email(user.email, user.name, token.token),
            f"password-reset:{user.id}",
        )
    return MessageResponse(message="If the account exists, a reset link was sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[Depends(_auth_limit)],
)
async def reset_password(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    login_attempts: LoginAttemptTracker = Depends(get_login_attempts),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MessageResponse:
    data = screen(
        PasswordResetSchema,
        request,
        payload,
        security_logger,
        skip_fields=frozenset({"password", "confirm_password", "token"}),
    )
    tokens = AuthTokenRepository(db)
    token = tokens.find_usable(data.token, TokenPurpose.PASSWORD_RESET)
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    users.set_password_hash(
        token.user_id, hash_password(data.password, get_config().security.bcrypt_rounds)
    )
    tokens.mark_used(token.id)
    db.commit()

    user = users.get(token.user_id)
    if user is not None:
        login_attempts.reset(user.email)
    security_logger.log(
        SecurityEventType.PASSWORD_RESET,
        SecurityLevel.INFO,
        request,
        user_id=token.user_id,
    )
    return MessageResponse(message="Password updated")


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(_auth_limit), Depends(enforce_origin)],
)
async def login(
    request: Request,
    response: Response,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    jwt_service: JwtService = Depends(get_jwt_service),
    login_attempts: LoginAttemptTracker = Depends(get_login_attempts),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> LoginResponse:
    """Check credentials and set the session cookie.

    Failures count against both the email and the client address; either
    reaching the limit locks further attempts for the lockout window.
    """
    data = screen(UserLoginSchema, request, payload, security_logger)
    client_ip = get_client_ip(request)

    if login_attempts.is_locked(data.email) or login_attempts.is_locked(client_ip):
        security_logger.log(
            SecurityEventType.BRUTE_FORCE_ATTEMPT,
            SecurityLevel.ERROR,
            request,
            {"email": data.email},
            user_email=data.email,
        )
        raise HTTPException(
            status_code=429,
            detail="Too many failed attempts, try again later",
            headers={"Retry-After": str(login_attempts.lockout_seconds)},
        )

    user = users.get_by_email(data.email)
    if user is None or not verify_password(data.password, user.password_hash):
        login_attempts.record_failure(data.email)
        login_attempts.record_failure(client_ip)
        security_logger.log_login_failed(
            request, data.email, "unknown user" if user is None else "wrong password"
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        security_logger.log_login_failed(request, data.email, "inactive account")
        raise HTTPException(status_code=403, detail="Account disabled")
    if not user.email_verified:
        raise HTTPException(status_code=403, detail="Email not verified")

    login_attempts.reset(data.email)
    login_attempts.reset(client_ip)
    users.touch_last_login(user.id)
    db.commit()

    token = jwt_service.issue(user.id, email=user.email, is_admin=user.is_admin)
    cookie = auth_cookie_settings()
    response.set_cookie(get_config().security.auth_cookie_name, token, **cookie)

    security_logger.log(
        SecurityEventType.LOGIN_SUCCESS,
        SecurityLevel.INFO,
        request,
        user_id=user.id,
        user_email=user.email,
    )
    return LoginResponse(user=UserProfile.from_user(user), token=token, expires_in=cookie["max_age"])


@router.get("/me", response_model=UserProfile)
async def me(user: User = Depends(get_current_user)) -> UserProfile:
    return UserProfile.from_user(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    user: User | None = Depends(get_optional_user),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> MessageResponse:
    response.delete_cookie(get_config().security.auth_cookie_name, path="/")
    if user is not None:
        security_logger.log(
            SecurityEventType.LOGOUT,
            SecurityLevel.INFO,
            request,
            user_id=user.id,
            user_email=user.email,
        )
    return MessageResponse(message="Logged out")


@router.put(
    "/profile",
    response_model=UserProfile,
    dependencies=[Depends(enforce_origin), Depends(require_csrf)],
)
async def update_profile(
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> UserProfile:
    data = screen(UserUpdateSchema, request, payload, security_logger)
    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = users.update(user.model_copy(update=changes))
    db.commit()
    security_logger.log(
        SecurityEventType.USER_UPDATED,
        SecurityLevel.INFO,
        request,
        {"fields": sorted(changes)},
        user_id=user.id,
    )
    return UserProfile.from_user(updated)


@router.get("/csrf-token")
async def csrf_token(
    request: Request,
    user: User = Depends(get_current_user),
) -> dict[str, str]:
    """CSRF token bound to the caller's session id."""
    claims = request.state.claims
    return {
        "csrf_token": generate_csrf_token(claims.sid),
        "header_name": get_config().security.csrf_header_name,
    }
