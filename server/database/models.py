# server/database/models.py
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    OPERATOR = "operator"
    VIEWER = "viewer"


class NodeRole(str, enum.Enum):
    MAIN = "main"
    WORKER = "worker"


class NodeStatus(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"


class ResourceKind(str, enum.Enum):
    """Tracked resource types; the value is the URL segment and the stored `type`"""
    VMS = "vms"
    CONTAINERS = "containers"
    JAILS = "jails"

    @property
    def stopped_status(self) -> str:
        return _STATUS_LABELS[self][0]

    @property
    def running_status(self) -> str:
        return _STATUS_LABELS[self][1]

    @property
    def initial_status(self) -> str:
        return self.stopped_status


# (stopped, running) per kind
_STATUS_LABELS = {
    ResourceKind.VMS: ("stopped", "running"),
    ResourceKind.CONTAINERS: ("exited", "up"),
    ResourceKind.JAILS: ("inactive", "active"),
}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column("password", String, nullable=False)  # bcrypt
    role = Column(String, nullable=False, default=UserRole.VIEWER.value)
    language = Column(String, nullable=False, default="en")


class Node(Base):
    __tablename__ = "nodes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    role = Column(String, nullable=False, default=NodeRole.WORKER.value)
    status = Column(String, nullable=False, default=NodeStatus.ONLINE.value)
    ip = Column(String)
    cpu_total = Column(Integer)
    cpu_used = Column(Integer)
    # Capacities in megabytes; rendered as "32GB" style strings by the API
    mem_total_mb = Column(Integer)
    mem_used_mb = Column(Integer)
    disk_total_mb = Column(Integer)
    disk_used_mb = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)

    resources = relationship("Resource", back_populates="node", passive_deletes=True)

    __table_args__ = (
        # At most one control node
        Index(
            "uq_nodes_single_main",
            "role",
            unique=True,
            sqlite_where=text("role = 'main'"),
        ),
    )


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)  # ResourceKind value
    name = Column(String, nullable=False)
    status = Column(String, nullable=False)
    image = Column(String)
    ip = Column(String)
    cpu = Column(Integer)
    memory = Column(String)
    disk = Column(String)
    node_id = Column(Integer, ForeignKey("nodes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    node = relationship("Node", back_populates="resources")


class LogEntry(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String, nullable=False)
    details = Column(Text)


class License(Base):
    # Singleton row, overwritten in place on registration
    __tablename__ = "license"

    id = Column(Integer, primary_key=True)
    license_key = Column(String)
    license_type = Column(String, nullable=False, default="trial")
    status = Column(String, nullable=False, default="unregistered")
    nodes_limit = Column(Integer)
    vms_limit = Column(Integer)
    containers_limit = Column(Integer)
    jails_limit = Column(Integer)
    expiry_date = Column(DateTime)
    support_tier = Column(String)
    registered_to = Column(String)
    features = Column(Text)  # JSON list
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
