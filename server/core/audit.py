# server/core/audit.py
"""
Audit Log - append-only record of who did what

Entries are written after the primary operation has committed. A failed
append is rolled back and logged; it never fails the caller.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import LogEntry, User

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


class AuditActions:
    """Action labels stored in logs.action"""

    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"

    USER_CREATE = "USER_CREATE"
    USER_DELETE = "USER_DELETE"

    NODE_CREATE = "NODE_CREATE"
    NODE_UPDATE = "NODE_UPDATE"
    NODE_DELETE = "NODE_DELETE"

    RESOURCE_CREATE = "RESOURCE_CREATE"
    RESOURCE_UPDATE = "RESOURCE_UPDATE"
    RESOURCE_DELETE = "RESOURCE_DELETE"

    LICENSE_UPDATE = "LICENSE_UPDATE"

    @staticmethod
    def for_action(action: str) -> str:
        """RESOURCE_START / RESOURCE_STOP / RESOURCE_RESTART"""
        return f"RESOURCE_{action.upper()}"


def record(db: Session, user_id: Optional[int], action: str, details: Optional[str] = None) -> Optional[LogEntry]:
    """Append one entry; returns None if the append failed"""
    entry = LogEntry(user_id=user_id, action=action, details=details)
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to append audit entry {action} (user_id={user_id})")
        return None

    logger.debug(f"Audit: {action} user_id={user_id} {details or ''}")
    return entry


def list_entries(db: Session, limit: int = DEFAULT_LIMIT) -> List[Tuple[LogEntry, Optional[str]]]:
    """Newest first, each paired with the acting username (None if unknown)"""
    return (
        db.query(LogEntry, User.username)
        .outerjoin(User, LogEntry.user_id == User.id)
        .order_by(LogEntry.timestamp.desc(), LogEntry.id.desc())
        .limit(limit)
        .all()
    )
