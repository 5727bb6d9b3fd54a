# server/schemas/resource.py
"""
Pydantic Schemas for VMs, containers and jails
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ResourceCreate(BaseModel):
    """
    Body for create and full update.

    Any `status` in the request is ignored: new resources always start in
    their kind's stopped state, and status only changes through actions.
    """
    name: str = Field(..., min_length=1, max_length=100)
    image: Optional[str] = None
    ip: Optional[str] = None
    cpu: Optional[int] = Field(None, ge=0)
    memory: Optional[str] = None
    disk: Optional[str] = None
    node_id: Optional[int] = None


class ResourceResponse(BaseModel):
    id: int
    type: str
    name: str
    status: str
    image: Optional[str]
    ip: Optional[str]
    cpu: Optional[int]
    memory: Optional[str]
    disk: Optional[str]
    node_id: Optional[int]
    node_name: Optional[str] = None
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ResourceActionResponse(BaseModel):
    message: str
    id: int
    type: str
    status: str
