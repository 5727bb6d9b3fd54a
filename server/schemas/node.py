# server/schemas/node.py
"""
Pydantic Schemas for cluster nodes

Capacities travel as "32GB" style strings and are stored as megabytes.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from core.cluster import format_capacity, parse_capacity_strict
from database.models import Node, NodeRole, NodeStatus

CAPACITY_FIELDS = ("mem_total", "mem_used", "disk_total", "disk_used")


class NodeCreate(BaseModel):
    """Full node definition, used for both create and replace"""
    name: str = Field(..., min_length=1, max_length=100)
    role: NodeRole = NodeRole.WORKER
    status: NodeStatus = NodeStatus.ONLINE
    ip: Optional[str] = ""
    cpu_total: Optional[int] = Field(None, ge=0)
    cpu_used: Optional[int] = Field(None, ge=0)
    mem_total: Optional[str] = None
    mem_used: Optional[str] = None
    disk_total: Optional[str] = None
    disk_used: Optional[str] = None

    @field_validator(*CAPACITY_FIELDS)
    @classmethod
    def validate_capacity(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        parse_capacity_strict(value)
        return value.strip()

    def capacities_mb(self) -> Dict[str, Optional[int]]:
        """Column values for the *_mb columns"""
        values = {}
        for name in CAPACITY_FIELDS:
            raw = getattr(self, name)
            values[f"{name}_mb"] = parse_capacity_strict(raw) if raw else None
        return values


class NodeResponse(BaseModel):
    id: int
    name: str
    role: str
    status: str
    ip: Optional[str]
    cpu_total: Optional[int]
    cpu_used: Optional[int]
    mem_total: Optional[str]
    mem_used: Optional[str]
    disk_total: Optional[str]
    disk_used: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_node(cls, node: Node) -> "NodeResponse":
        return cls(
            id=node.id,
            name=node.name,
            role=node.role,
            status=node.status,
            ip=node.ip,
            cpu_total=node.cpu_total,
            cpu_used=node.cpu_used,
            mem_total=format_capacity(node.mem_total_mb),
            mem_used=format_capacity(node.mem_used_mb),
            disk_total=format_capacity(node.disk_total_mb),
            disk_used=format_capacity(node.disk_used_mb),
            created_at=node.created_at,
        )


class UsageBlock(BaseModel):
    total: str
    used: str
    percentage: int


class CpuBlock(BaseModel):
    total: int
    used: int
    percentage: int


class NodeCountBlock(BaseModel):
    total: int
    online: int


class ClusterStatsResponse(BaseModel):
    cpu: CpuBlock
    memory: UsageBlock
    disk: UsageBlock
    nodes: NodeCountBlock
