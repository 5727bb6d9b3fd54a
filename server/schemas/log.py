# server/schemas/log.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LogEntryResponse(BaseModel):
    id: int
    timestamp: datetime
    user_id: Optional[int]
    username: Optional[str]
    action: str
    details: Optional[str]
