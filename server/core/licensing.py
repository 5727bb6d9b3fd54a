# server/core/licensing.py
"""
License registration stub

Keys are checked by format only: "CBSD-" prefix, tier picked from the
"ENT"/"STD" markers. No license server is contacted.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core import audit
from core.audit import AuditActions
from core.errors import InvalidInput
from database.models import License, Node, Resource, ResourceKind

logger = logging.getLogger(__name__)

KEY_PREFIX = "CBSD-"
BASE_FEATURES = ["clustering", "api_access", "live_migration"]
UNLIMITED = 99999


@dataclass(frozen=True)
class LicenseTier:
    license_type: str
    nodes: int
    vms: int
    containers: int
    jails: int
    support_tier: str
    features: List[str] = field(default_factory=list)


TRIAL = LicenseTier("trial", 5, 20, 100, 50, "community", list(BASE_FEATURES))
STANDARD = LicenseTier(
    "standard", 25, 100, 500, 200, "business",
    BASE_FEATURES + ["advanced_backup"],
)
ENTERPRISE = LicenseTier(
    "enterprise", UNLIMITED, UNLIMITED, UNLIMITED, UNLIMITED, "24/7",
    BASE_FEATURES + ["high_availability", "advanced_backup", "dedicated_support"],
)


def resolve_tier(license_key: Optional[str]) -> LicenseTier:
    """Validate the key format and pick its tier; raises InvalidInput"""
    if not license_key:
        raise InvalidInput("License key is required")
    if not license_key.startswith(KEY_PREFIX):
        raise InvalidInput("Invalid license key format")
    if "ENT" in license_key:
        return ENTERPRISE
    if "STD" in license_key:
        return STANDARD
    return TRIAL


def one_year_from(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        # Feb 29th
        return moment.replace(year=moment.year + 1, day=28)


def seed_trial(db: Session) -> License:
    """Unregistered trial row, written once at bootstrap"""
    row = License(
        license_key=None,
        license_type=TRIAL.license_type,
        status="unregistered",
        nodes_limit=TRIAL.nodes,
        vms_limit=TRIAL.vms,
        containers_limit=TRIAL.containers,
        jails_limit=TRIAL.jails,
        expiry_date=None,
        support_tier=TRIAL.support_tier,
        registered_to=None,
        features=json.dumps(TRIAL.features),
    )
    db.add(row)
    return row


def get_license(db: Session) -> Optional[License]:
    return db.query(License).order_by(License.id).first()


def usage_counts(db: Session) -> Dict[str, int]:
    counts = dict(
        db.query(Resource.type, func.count(Resource.id)).group_by(Resource.type).all()
    )
    usage = {"nodes": db.query(func.count(Node.id)).scalar() or 0}
    for kind in ResourceKind:
        usage[kind.value] = counts.get(kind.value, 0)
    return usage


def describe(row: License, usage: Optional[Dict[str, int]] = None) -> dict:
    """License row as the API returns it, features decoded"""
    features = json.loads(row.features) if row.features else []
    data = {
        "license_key": row.license_key,
        "license_type": row.license_type,
        "status": row.status,
        "nodes_limit": row.nodes_limit,
        "vms_limit": row.vms_limit,
        "containers_limit": row.containers_limit,
        "jails_limit": row.jails_limit,
        "expiry_date": row.expiry_date,
        "support_tier": row.support_tier,
        "registered_to": row.registered_to,
        "features": features,
        "updated_at": row.updated_at,
    }
    if usage is not None:
        data["usage"] = usage
    return data


def register(db: Session, license_key: Optional[str], actor_id: int) -> License:
    """Overwrite the singleton license row with the tier the key unlocks"""
    tier = resolve_tier(license_key)

    row = get_license(db)
    if row is None:
        row = License()
        db.add(row)

    row.license_key = license_key
    row.license_type = tier.license_type
    row.status = "active"
    row.nodes_limit = tier.nodes
    row.vms_limit = tier.vms
    row.containers_limit = tier.containers
    row.jails_limit = tier.jails
    row.expiry_date = one_year_from(datetime.utcnow())
    row.support_tier = tier.support_tier
    row.registered_to = "Licensed Customer"
    row.features = json.dumps(tier.features)
    row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)

    logger.info(f"License registered: {tier.license_type}")
    audit.record(db, actor_id, AuditActions.LICENSE_UPDATE, f"Updated license to {tier.license_type}")
    return row
