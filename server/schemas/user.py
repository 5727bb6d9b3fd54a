# server/schemas/user.py
"""
Pydantic Schemas for panel users
"""

from pydantic import BaseModel, Field

from database.models import UserRole


class UserCreate(BaseModel):
    """Schema for creating a new user"""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.VIEWER
    language: str = Field("en", min_length=2, max_length=10)


class UserResponse(BaseModel):
    id: int
    username: str
    role: str
    language: str

    class Config:
        from_attributes = True
