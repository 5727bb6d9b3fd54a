# server/schemas/license.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class LicenseRegisterRequest(BaseModel):
    # Optional so a missing key is reported as INVALID_INPUT, not a 422
    license_key: Optional[str] = None


class LicenseUsage(BaseModel):
    nodes: int
    vms: int
    containers: int
    jails: int


class LicenseResponse(BaseModel):
    license_key: Optional[str]
    license_type: str
    status: str
    nodes_limit: Optional[int]
    vms_limit: Optional[int]
    containers_limit: Optional[int]
    jails_limit: Optional[int]
    expiry_date: Optional[datetime]
    support_tier: Optional[str]
    registered_to: Optional[str]
    features: List[str]
    updated_at: Optional[datetime]
    usage: Optional[LicenseUsage] = None


class LicenseRegisterResponse(BaseModel):
    message: str
    license: LicenseResponse
