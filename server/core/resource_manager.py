# server/core/resource_manager.py
"""
Resource Lifecycle Manager

CRUD and start/stop/restart over VM, container and jail rows. Each kind is
a two-state machine (stopped <-> running) with its own labels; transitions
only rewrite the stored status. Every successful mutation is written to the
audit log and announced as a resource_update event.
"""

import enum
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core import audit
from core.audit import AuditActions
from core.domain_events import EventTypes, resource_update_payload
from core.errors import InvalidInput, NotFound
from core.events import EventBus
from database.models import Node, Resource, ResourceKind
from schemas.resource import ResourceCreate

logger = logging.getLogger(__name__)


class ResourceAction(str, enum.Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"


def parse_kind(value: str) -> ResourceKind:
    try:
        return ResourceKind(value)
    except ValueError:
        raise InvalidInput(f"Invalid resource type '{value}'")


def parse_action(value: str) -> ResourceAction:
    try:
        return ResourceAction(value)
    except ValueError:
        raise InvalidInput(f"Invalid action '{value}'")


def next_status(kind: ResourceKind, action: ResourceAction) -> str:
    if action in (ResourceAction.START, ResourceAction.RESTART):
        return kind.running_status
    return kind.stopped_status


class ResourceManager:
    """Resource CRUD and lifecycle actions, announcing changes on an EventBus"""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus

    async def _announce(self, kind: ResourceKind) -> None:
        await self.event_bus.emit(
            EventTypes.RESOURCE_UPDATE,
            resource_update_payload(kind.value),
            source="resource_manager",
        )

    def _check_node(self, db: Session, node_id: Optional[int]) -> None:
        if node_id is None:
            return
        if not db.query(Node.id).filter(Node.id == node_id).first():
            raise InvalidInput(f"Node with id {node_id} does not exist")

    def _require(self, db: Session, kind: ResourceKind, resource_id: int) -> Resource:
        resource = (
            db.query(Resource)
            .filter(Resource.id == resource_id, Resource.type == kind.value)
            .first()
        )
        if not resource:
            raise NotFound(f"Resource {kind.value}/{resource_id} not found")
        return resource

    def list_resources(self, db: Session, kind: ResourceKind) -> List[Tuple[Resource, Optional[str]]]:
        """All resources of a kind, each paired with its node name"""
        return (
            db.query(Resource, Node.name)
            .outerjoin(Node, Resource.node_id == Node.id)
            .filter(Resource.type == kind.value)
            .order_by(Resource.id)
            .all()
        )

    def get_resource(self, db: Session, kind: ResourceKind, resource_id: int) -> Resource:
        return self._require(db, kind, resource_id)

    async def create_resource(self, db: Session, kind: ResourceKind, resource_in: ResourceCreate, actor_id: int) -> Resource:
        self._check_node(db, resource_in.node_id)

        resource = Resource(
            type=kind.value,
            name=resource_in.name,
            status=kind.initial_status,
            image=resource_in.image,
            ip=resource_in.ip,
            cpu=resource_in.cpu,
            memory=resource_in.memory,
            disk=resource_in.disk,
            node_id=resource_in.node_id,
        )
        db.add(resource)
        db.commit()
        db.refresh(resource)

        logger.info(f"Created {kind.value} {resource.name} (id={resource.id})")
        audit.record(db, actor_id, AuditActions.RESOURCE_CREATE, f"Created {kind.value} {resource.name}")
        await self._announce(kind)
        return resource

    async def update_resource(
        self, db: Session, kind: ResourceKind, resource_id: int, resource_in: ResourceCreate, actor_id: int
    ) -> Resource:
        """Full overwrite of the editable fields; status is left alone"""
        resource = self._require(db, kind, resource_id)
        self._check_node(db, resource_in.node_id)

        resource.name = resource_in.name
        resource.image = resource_in.image
        resource.ip = resource_in.ip
        resource.cpu = resource_in.cpu
        resource.memory = resource_in.memory
        resource.disk = resource_in.disk
        resource.node_id = resource_in.node_id
        db.commit()
        db.refresh(resource)

        logger.info(f"Updated {kind.value} {resource.name} (id={resource_id})")
        audit.record(db, actor_id, AuditActions.RESOURCE_UPDATE, f"Updated {kind.value} {resource.name} (ID: {resource_id})")
        await self._announce(kind)
        return resource

    async def delete_resource(self, db: Session, kind: ResourceKind, resource_id: int, actor_id: int) -> None:
        resource = self._require(db, kind, resource_id)
        name = resource.name
        db.delete(resource)
        db.commit()

        logger.info(f"Deleted {kind.value} {name} (id={resource_id})")
        audit.record(db, actor_id, AuditActions.RESOURCE_DELETE, f"Deleted {kind.value} {name} (ID: {resource_id})")
        await self._announce(kind)

    async def apply_action(
        self, db: Session, kind: ResourceKind, resource_id: int, action: ResourceAction, actor_id: int
    ) -> Resource:
        """Move the resource to the state the action implies; always succeeds"""
        resource = self._require(db, kind, resource_id)
        previous = resource.status
        resource.status = next_status(kind, action)
        db.commit()
        db.refresh(resource)

        logger.info(f"{action.value} {kind.value} {resource.id}: {previous} -> {resource.status}")
        audit.record(
            db,
            actor_id,
            AuditActions.for_action(action.value),
            f"{action.value} {kind.value} {resource.name} (ID: {resource_id})",
        )
        await self._announce(kind)
        return resource
