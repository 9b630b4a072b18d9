"""Back-office user management."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlmodel import Session

from src.storefront.api.http.deps import (
    enforce_origin,
    get_db_session,
    get_security_logger,
    get_user_repository,
    require_admin,
    require_csrf,
)
from src.storefront.core.errors import NotFoundError
from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation import sanitize_string
from src.storefront.entities.core.user import User, UserRepository

router = APIRouter(prefix="/users", tags=["admin"], dependencies=[Depends(require_admin)])


class AdminUserView(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    cpf: str | None = None
    birth_date: str | None = None
    gender: str | None = None
    is_admin: bool
    is_active: bool
    email_verified: bool
    last_login_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "AdminUserView":
        return cls(
            **user.model_dump(exclude={"password_hash", "email_verified_at", "updated_at"}),
            email_verified=user.email_verified,
        )


class UserPage(BaseModel):
    users: list[AdminUserView]
    total: int
    limit: int
    offset: int


class AdminUserUpdateSchema(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    is_admin: bool | None = None
    is_active: bool | None = None


def _get_user(users: UserRepository, user_id: str) -> User:
    user = users.get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=UserPage)
def list_users(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    users: UserRepository = Depends(get_user_repository),
) -> UserPage:
    return UserPage(
        users=[AdminUserView.from_user(user) for user in users.list_all(limit=limit, offset=offset)],
        total=users.count(),
        limit=limit,
        offset=offset,
    )


@router.get("/{user_id}", response_model=AdminUserView)
def user_detail(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> AdminUserView:
    """Decrypted profile; every read is recorded as sensitive data access."""
    user = _get_user(users, user_id)
    security_logger.log(
        SecurityEventType.SENSITIVE_DATA_ACCESS,
        SecurityLevel.INFO,
        request,
        {"subject_user_id": user.id},
        user_id=admin.id,
        user_email=admin.email,
    )
    return AdminUserView.from_user(user)


@router.put(
    "/{user_id}",
    response_model=AdminUserView,
    dependencies=[Depends(enforce_origin), Depends(require_csrf)],
)
def update_user(
    user_id: str,
    body: AdminUserUpdateSchema,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    users: UserRepository = Depends(get_user_repository),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> AdminUserView:
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if user_id == admin.id and (changes.get("is_admin") is False or changes.get("is_active") is False):
        raise HTTPException(status_code=400, detail="Administrators cannot demote or disable themselves")
    for key in ("name", "phone"):
        if key in changes:
            changes[key] = sanitize_string(changes[key])

    updated = users.update(_get_user(users, user_id).model_copy(update=changes))
    db.commit()
    security_logger.log(
        SecurityEventType.USER_UPDATED,
        SecurityLevel.WARNING if {"is_admin", "is_active"} & changes.keys() else SecurityLevel.INFO,
        request,
        {"subject_user_id": updated.id, "fields": sorted(changes)},
        user_id=admin.id,
        user_email=admin.email,
    )
    return AdminUserView.from_user(updated)
