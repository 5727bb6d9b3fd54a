# server/api/deps.py
"""
Request dependencies: settings, resource manager and the authenticated principal
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings
from core.errors import Unauthorized
from core.resource_manager import ResourceManager
from core.security import Capability, Principal, decode_access_token, require_capability

# A missing header is turned into 401 by get_current_principal
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_resource_manager(request: Request) -> ResourceManager:
    return request.app.state.resource_manager


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """Missing token -> 401, token that fails verification -> 403"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    return decode_access_token(credentials.credentials, settings.SECRET_KEY)


def require(capability: Capability):
    """Dependency factory gating a route on one capability"""

    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        return require_capability(principal, capability)

    checker.__name__ = f"require_{capability.value}"
    return checker


require_reader = require(Capability.READ)
require_operator = require(Capability.OPERATE)
require_admin = require(Capability.ADMINISTER)
