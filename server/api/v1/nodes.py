# server/api/v1/nodes.py
"""
Cluster node endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from api.deps import require_admin, require_operator, require_reader
from core.node_manager import node_manager
from core.security import Principal
from database.session import get_db
from schemas.base import ErrorResponse
from schemas.node import ClusterStatsResponse, NodeCreate, NodeResponse

router = APIRouter(tags=["Cluster"])


@router.get("/nodes", response_model=List[NodeResponse], summary="List cluster nodes")
async def list_nodes(
    db: Session = Depends(get_db),
    _: Principal = Depends(require_reader),
):
    return [NodeResponse.from_node(node) for node in node_manager.get_all_nodes(db)]


@router.post(
    "/nodes",
    response_model=NodeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Name taken or second main node", "model": ErrorResponse}},
    summary="Add node",
)
async def create_node(
    node_in: NodeCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_operator),
):
    node = node_manager.create_node(db, node_in, actor_id=principal.id)
    return NodeResponse.from_node(node)


@router.put(
    "/nodes/{node_id}",
    response_model=NodeResponse,
    responses={
        404: {"description": "Node not found", "model": ErrorResponse},
        409: {"description": "Name taken or main node change", "model": ErrorResponse},
    },
    summary="Replace node",
)
async def update_node(
    node_id: int,
    node_in: NodeCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_operator),
):
    node = node_manager.update_node(db, node_id, node_in, actor_id=principal.id)
    return NodeResponse.from_node(node)


@router.delete(
    "/nodes/{node_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "Node not found", "model": ErrorResponse},
        409: {"description": "Main node", "model": ErrorResponse},
    },
    summary="Delete node",
    description="Delete a worker node; its resources are left without a node",
)
async def delete_node(
    node_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    node_manager.delete_node(db, node_id, actor_id=principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/cluster/stats", response_model=ClusterStatsResponse, summary="Fleet-wide utilization")
async def cluster_stats(
    db: Session = Depends(get_db),
    _: Principal = Depends(require_reader),
):
    return node_manager.cluster_stats(db)
