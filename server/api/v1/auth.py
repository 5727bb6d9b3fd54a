# server/api/v1/auth.py
"""
Login endpoint
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_settings
from config import Settings
from core import audit
from core.audit import AuditActions
from core.errors import Unauthorized
from core.security import create_access_token, verify_password
from database.models import User
from database.session import get_db
from schemas.auth import LoginRequest, LoginResponse
from schemas.base import ErrorResponse
from schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in",
    description="Exchange username and password for a bearer token valid for several hours",
)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = db.query(User).filter(User.username == credentials.username).first()

    if user is None or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Failed login attempt for user: {credentials.username}")
        audit.record(db, None, AuditActions.LOGIN_FAILURE, f"Failed login attempt for user: {credentials.username}")
        # Same message whichever factor failed
        raise Unauthorized("Invalid credentials")

    token = create_access_token(user, settings.SECRET_KEY, settings.TOKEN_EXPIRE_HOURS)
    audit.record(db, user.id, AuditActions.LOGIN_SUCCESS, f"User {user.username} logged in")
    logger.info(f"User {user.username} logged in")

    return LoginResponse(token=token, user=UserResponse.model_validate(user))
