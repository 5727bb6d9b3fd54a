from pydantic import BaseModel

from schemas.user import UserResponse


class LoginRequest(BaseModel):
    # Blank or missing fields fall through to the invalid-credentials path
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str
    user: UserResponse
