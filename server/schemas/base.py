# server/schemas/base.py
"""
Shared response envelopes
"""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    error: str
    error_code: str


class ErrorResponse(BaseModel):
    """Body of every domain error response"""
    detail: ErrorDetail
