# server/core/node_manager.py
"""
Node Manager - cluster membership CRUD

Keeps exactly one node with role "main": a second main cannot be created,
the main node cannot be demoted or deleted.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core import audit
from core.audit import AuditActions
from core.cluster import compute_stats
from core.errors import Conflict, NotFound
from database.models import Node, NodeRole, Resource
from schemas.node import NodeCreate

logger = logging.getLogger(__name__)


class NodeManager:
    """Node CRUD with audit entries for every mutation"""

    def get_all_nodes(self, db: Session) -> List[Node]:
        # Main node first, then workers by name
        return (
            db.query(Node)
            .order_by((Node.role == NodeRole.MAIN.value).desc(), Node.name.asc())
            .all()
        )

    def get_node_by_id(self, db: Session, node_id: int) -> Optional[Node]:
        return db.query(Node).filter(Node.id == node_id).first()

    def get_main_node(self, db: Session) -> Optional[Node]:
        return db.query(Node).filter(Node.role == NodeRole.MAIN.value).first()

    def _require(self, db: Session, node_id: int) -> Node:
        node = self.get_node_by_id(db, node_id)
        if not node:
            raise NotFound(f"Node with id {node_id} not found")
        return node

    def _check_name_free(self, db: Session, name: str, node_id: Optional[int] = None) -> None:
        query = db.query(Node).filter(Node.name == name)
        if node_id is not None:
            query = query.filter(Node.id != node_id)
        if query.first():
            raise Conflict(f"Node with name '{name}' already exists")

    def _apply(self, node: Node, node_in: NodeCreate) -> None:
        node.name = node_in.name
        node.role = node_in.role.value
        node.status = node_in.status.value
        node.ip = node_in.ip or ""
        node.cpu_total = node_in.cpu_total
        node.cpu_used = node_in.cpu_used
        for column, value in node_in.capacities_mb().items():
            setattr(node, column, value)

    def _commit(self, db: Session, name: str) -> None:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict(f"Node '{name}' conflicts with an existing node")

    def create_node(self, db: Session, node_in: NodeCreate, actor_id: int) -> Node:
        self._check_name_free(db, node_in.name)
        if node_in.role == NodeRole.MAIN and self.get_main_node(db):
            raise Conflict("A main node already exists")

        node = Node()
        self._apply(node, node_in)
        db.add(node)
        self._commit(db, node_in.name)
        db.refresh(node)

        logger.info(f"Node created: {node.name} ({node.role})")
        audit.record(db, actor_id, AuditActions.NODE_CREATE, f"Created node {node.name} with role {node.role}")
        return node

    def update_node(self, db: Session, node_id: int, node_in: NodeCreate, actor_id: int) -> Node:
        node = self._require(db, node_id)
        self._check_name_free(db, node_in.name, node_id=node_id)

        is_main = node.role == NodeRole.MAIN.value
        wants_main = node_in.role == NodeRole.MAIN
        if is_main and not wants_main:
            raise Conflict("The main node cannot be demoted")
        if wants_main and not is_main:
            raise Conflict("A main node already exists")

        self._apply(node, node_in)
        self._commit(db, node_in.name)
        db.refresh(node)

        logger.info(f"Node updated: {node.name} (id={node.id})")
        audit.record(db, actor_id, AuditActions.NODE_UPDATE, f"Updated node {node.name} (ID: {node.id})")
        return node

    def delete_node(self, db: Session, node_id: int, actor_id: int) -> None:
        """Detach the node's resources and delete it in one transaction"""
        node = self._require(db, node_id)
        if node.role == NodeRole.MAIN.value:
            raise Conflict("The main node cannot be deleted")

        name = node.name
        detached = (
            db.query(Resource)
            .filter(Resource.node_id == node_id)
            .update({Resource.node_id: None}, synchronize_session=False)
        )
        db.delete(node)
        db.commit()

        logger.info(f"Node deleted: {name} (id={node_id}, {detached} resources detached)")
        audit.record(db, actor_id, AuditActions.NODE_DELETE, f"Deleted node {name} (ID: {node_id})")

    def cluster_stats(self, db: Session) -> dict:
        return compute_stats(db.query(Node).all())


node_manager = NodeManager()
