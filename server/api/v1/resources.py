# server/api/v1/resources.py
"""
VM, container and jail endpoints

Registered last: `/{resource}` would otherwise shadow /users, /nodes, /logs.
The path segment is parsed into a ResourceKind once, here.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from api.deps import get_resource_manager, require_operator, require_reader
from core.resource_manager import ResourceManager, parse_action, parse_kind
from core.security import Principal
from database.session import get_db
from schemas.base import ErrorResponse
from schemas.resource import ResourceActionResponse, ResourceCreate, ResourceResponse

router = APIRouter(tags=["Resources"])

NOT_FOUND = {404: {"description": "Resource not found", "model": ErrorResponse}}
BAD_KIND = {400: {"description": "Unknown resource type or action", "model": ErrorResponse}}


def _response(resource, node_name=None) -> ResourceResponse:
    data = ResourceResponse.model_validate(resource)
    data.node_name = node_name if node_name is not None else (resource.node.name if resource.node else None)
    return data


@router.get("/{resource}", response_model=List[ResourceResponse], responses=BAD_KIND, summary="List resources of a type")
async def list_resources(
    resource: str,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    _: Principal = Depends(require_reader),
):
    kind = parse_kind(resource)
    return [_response(item, node_name) for item, node_name in manager.list_resources(db, kind)]


@router.post(
    "/{resource}",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_KIND,
    summary="Create resource",
    description="New resources always start stopped (stopped / exited / inactive)",
)
async def create_resource(
    resource: str,
    resource_in: ResourceCreate,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    principal: Principal = Depends(require_operator),
):
    kind = parse_kind(resource)
    created = await manager.create_resource(db, kind, resource_in, actor_id=principal.id)
    return _response(created)


@router.get("/{resource}/{resource_id}", response_model=ResourceResponse, responses={**BAD_KIND, **NOT_FOUND}, summary="Get resource")
async def get_resource(
    resource: str,
    resource_id: int,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    _: Principal = Depends(require_reader),
):
    kind = parse_kind(resource)
    return _response(manager.get_resource(db, kind, resource_id))


@router.put("/{resource}/{resource_id}", response_model=ResourceResponse, responses={**BAD_KIND, **NOT_FOUND}, summary="Replace resource")
async def update_resource(
    resource: str,
    resource_id: int,
    resource_in: ResourceCreate,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    principal: Principal = Depends(require_operator),
):
    kind = parse_kind(resource)
    updated = await manager.update_resource(db, kind, resource_id, resource_in, actor_id=principal.id)
    return _response(updated)


@router.delete(
    "/{resource}/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**BAD_KIND, **NOT_FOUND},
    summary="Delete resource",
)
async def delete_resource(
    resource: str,
    resource_id: int,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    principal: Principal = Depends(require_operator),
):
    kind = parse_kind(resource)
    await manager.delete_resource(db, kind, resource_id, actor_id=principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{resource}/{resource_id}/{action}",
    response_model=ResourceActionResponse,
    responses={**BAD_KIND, **NOT_FOUND},
    summary="Start, stop or restart a resource",
)
async def resource_action(
    resource: str,
    resource_id: int,
    action: str,
    db: Session = Depends(get_db),
    manager: ResourceManager = Depends(get_resource_manager),
    principal: Principal = Depends(require_operator),
):
    kind = parse_kind(resource)
    parsed_action = parse_action(action)
    updated = await manager.apply_action(db, kind, resource_id, parsed_action, actor_id=principal.id)
    return ResourceActionResponse(
        message=f"Successfully applied {parsed_action.value} to {kind.value} {resource_id}",
        id=updated.id,
        type=updated.type,
        status=updated.status,
    )
