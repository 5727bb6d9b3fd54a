# server/api/v1/system.py
"""
Host metrics, runtime configuration and licensing
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session

from api.deps import get_settings, require_admin, require_reader
from config import Settings
from core import licensing, system_info
from core.security import Principal
from database.session import get_db
from schemas.base import ErrorResponse
from schemas.license import LicenseRegisterRequest, LicenseRegisterResponse, LicenseResponse

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/stats", summary="Host utilization")
async def get_stats(_: Principal = Depends(require_reader)):
    return system_info.collect_stats()


@router.get("/host", summary="Host details")
async def get_host(_: Principal = Depends(require_reader)):
    return system_info.collect_host_info()


@router.get("/info", summary="Host summary")
async def get_info(_: Principal = Depends(require_reader)):
    return system_info.collect_summary()


@router.get("/config", summary="Runtime configuration (non-secret)")
async def get_config(
    settings: Settings = Depends(get_settings),
    _: Principal = Depends(require_admin),
):
    return {
        "port": settings.PORT,
        "servername": settings.SERVERNAME,
        "database_url": make_url(settings.DATABASE_URL).render_as_string(hide_password=True),
        "demo_mode": settings.DEMO_MODE,
        "ssl": {"enabled": settings.SSL_ENABLED},
    }


@router.get("/license", response_model=Optional[LicenseResponse], summary="Current license and usage")
async def get_license(
    db: Session = Depends(get_db),
    _: Principal = Depends(require_reader),
):
    row = licensing.get_license(db)
    if row is None:
        return None
    return licensing.describe(row, usage=licensing.usage_counts(db))


@router.post(
    "/license",
    response_model=LicenseRegisterResponse,
    responses={400: {"description": "Missing or malformed key", "model": ErrorResponse}},
    summary="Register a license key",
)
async def register_license(
    body: LicenseRegisterRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    row = licensing.register(db, body.license_key, actor_id=principal.id)
    return {
        "message": "License registered successfully",
        "license": licensing.describe(row),
    }
