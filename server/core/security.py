# server/core/security.py
"""
Password hashing, access tokens and role checks
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from core.errors import Forbidden

ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


class Capability(str, enum.Enum):
    READ = "read"
    OPERATE = "operate"
    ADMINISTER = "administer"


# Flat sets per role, not a hierarchy
ROLE_CAPABILITIES = {
    "admin": {Capability.READ, Capability.OPERATE, Capability.ADMINISTER},
    "operator": {Capability.READ, Capability.OPERATE},
    "viewer": {Capability.READ},
}

CAPABILITY_MESSAGES = {
    Capability.READ: "Authentication required",
    Capability.OPERATE: "Operator access required",
    Capability.ADMINISTER: "Admin access required",
}


@dataclass(frozen=True)
class Principal:
    """Identity decoded from a verified access token"""
    id: int
    username: str
    role: str
    language: str = "en"

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES.get(self.role, set())


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user: Any, secret_key: str, expire_hours: int = 8) -> str:
    """Sign a token carrying the user's id, username, role and language"""
    expire = datetime.utcnow() + timedelta(hours=expire_hours)
    claims = {
        "sub": str(user.id),
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "language": user.language or "en",
        "exp": expire,
    }
    return jwt.encode(claims, secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> Principal:
    """Verify signature and expiry; any failure is Forbidden"""
    try:
        claims: Dict[str, Any] = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        return Principal(
            id=int(claims["id"]),
            username=claims["username"],
            role=claims["role"],
            language=claims.get("language") or "en",
        )
    except (JWTError, KeyError, TypeError, ValueError):
        raise Forbidden("Invalid or expired token")


def require_capability(principal: Principal, capability: Capability) -> Principal:
    if not principal.can(capability):
        raise Forbidden(CAPABILITY_MESSAGES[capability])
    return principal
