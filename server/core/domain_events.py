# server/core/domain_events.py
"""
Domain Events - things observers of the panel care about
"""

from datetime import datetime
from typing import Any, Dict, Optional


class EventTypes:
    """All domain event type constants"""

    # Emitted on every resource mutation and by the demo heartbeat.
    # Observers re-fetch the list for `resource`; no diff is sent.
    RESOURCE_UPDATE = "resource_update"


def resource_update_payload(resource: str, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """Build payload for resource_update"""
    return {
        "resource": resource,
        "timestamp": (timestamp or datetime.utcnow()).isoformat(),
    }
