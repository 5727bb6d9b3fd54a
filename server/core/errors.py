# server/core/errors.py
"""
Domain errors raised by the core services

Each error maps to one HTTP status; main.py renders them as
{"detail": {"error": ..., "error_code": ...}}.
"""

from fastapi import status


class PanelError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": self.message, "error_code": self.error_code}


class Unauthorized(PanelError):
    """No credentials presented"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"


class Forbidden(PanelError):
    """Credentials invalid/expired, or role too weak"""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NotFound(PanelError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class InvalidInput(PanelError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_INPUT"


class Conflict(PanelError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class InternalError(PanelError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
