# server/api/v1/users.py
"""
User management and audit log endpoints (admin only)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.deps import get_settings, require_admin
from config import Settings
from core import audit
from core.audit import AuditActions
from core.errors import Conflict, NotFound
from core.security import Principal, hash_password
from database.bootstrap import DEFAULT_ADMIN_USERNAME
from database.models import User
from database.session import get_db
from schemas.base import ErrorResponse
from schemas.log import LogEntryResponse
from schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.get("/users", response_model=List[UserResponse], summary="List users")
async def list_users(
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
):
    return db.query(User).order_by(User.id).all()


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username taken", "model": ErrorResponse}},
    summary="Create user",
)
async def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    principal: Principal = Depends(require_admin),
):
    if db.query(User).filter(User.username == user_in.username).first():
        raise Conflict(f"User '{user_in.username}' already exists")

    user = User(
        username=user_in.username,
        password_hash=hash_password(user_in.password, rounds=settings.BCRYPT_ROUNDS),
        role=user_in.role.value,
        language=user_in.language,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"User '{user_in.username}' already exists")
    db.refresh(user)

    logger.info(f"User created: {user.username} ({user.role})")
    audit.record(
        db, principal.id, AuditActions.USER_CREATE,
        f"Created user {user.username} with role {user.role} and language {user.language}",
    )
    return user


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Built-in admin", "model": ErrorResponse},
    },
    summary="Delete user",
)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound(f"User with id {user_id} not found")
    if user.username == DEFAULT_ADMIN_USERNAME:
        raise Conflict("The built-in admin account cannot be deleted")

    username = user.username
    db.delete(user)
    db.commit()

    logger.info(f"User deleted: {username}")
    audit.record(db, principal.id, AuditActions.USER_DELETE, f"Deleted user {username}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/logs", response_model=List[LogEntryResponse], summary="Recent audit entries")
async def list_logs(
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
):
    return [
        LogEntryResponse(
            id=entry.id,
            timestamp=entry.timestamp,
            user_id=entry.user_id,
            username=username,
            action=entry.action,
            details=entry.details,
        )
        for entry, username in audit.list_entries(db, limit=limit)
    ]
