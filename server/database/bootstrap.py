# server/database/bootstrap.py
"""
Schema creation, additive migrations and seed data

Safe to run on every start: tables and columns are only added when absent
and every seed is guarded by an existence check, so re-running after a
partial manual deletion only restores the missing pieces.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from config import Settings
from core import licensing
from core.cluster import parse_capacity
from core.security import hash_password
from database.models import Base, License, Node, NodeRole, Resource, User, UserRole
from database.session import Database

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin"

MAIN_NODE = {
    "name": "CloudBSD Main", "role": "main", "status": "online", "ip": "127.0.0.1",
    "cpu_total": 8, "cpu_used": 2, "mem_total": "32GB", "mem_used": "8GB",
    "disk_total": "500GB", "disk_used": "120GB",
}

DEMO_WORKERS = [
    {"name": "bsd-worker-01", "role": "worker", "status": "online", "ip": "192.168.1.50",
     "cpu_total": 16, "cpu_used": 4, "mem_total": "64GB", "mem_used": "12GB",
     "disk_total": "1TB", "disk_used": "200GB"},
    {"name": "bsd-worker-02", "role": "worker", "status": "online", "ip": "192.168.1.51",
     "cpu_total": 4, "cpu_used": 1, "mem_total": "8GB", "mem_used": "2GB",
     "disk_total": "250GB", "disk_used": "50GB"},
    {"name": "bsd-worker-03", "role": "worker", "status": "offline", "ip": "192.168.1.52",
     "cpu_total": 8, "cpu_used": 0, "mem_total": "16GB", "mem_used": "0GB",
     "disk_total": "500GB", "disk_used": "0GB"},
]

# node: "main", or the worker name the resource is placed on
DEMO_RESOURCES = [
    {"type": "vms", "name": "web-server", "status": "running", "cpu": 1, "memory": "2GB", "disk": "20GB", "node": "main"},
    {"type": "vms", "name": "db-server", "status": "stopped", "cpu": 2, "memory": "4GB", "disk": "50GB", "node": "main"},
    {"type": "containers", "name": "nginx-proxy", "status": "up", "image": "nginx:latest", "disk": "1GB", "node": "bsd-worker-01"},
    {"type": "containers", "name": "redis-cache", "status": "exited", "image": "redis:6", "disk": "2GB", "node": "bsd-worker-01"},
    {"type": "jails", "name": "app-jail", "status": "active", "ip": "192.168.1.10", "cpu": 1, "memory": "1GB", "disk": "10GB", "node": "bsd-worker-02"},
    {"type": "containers", "name": "container-worker", "status": "running", "image": "fedora:latest", "disk": "5GB", "node": "bsd-worker-01"},
    {"type": "containers", "name": "postgres-db", "status": "running", "image": "postgres:15-alpine", "disk": "10GB", "node": "bsd-worker-02"},
    {"type": "containers", "name": "monitoring-agent", "status": "running", "image": "prometheus:latest", "disk": "5GB", "node": "bsd-worker-01"},
    {"type": "containers", "name": "logging-sidecar", "status": "up", "image": "fluentd:latest", "disk": "1GB", "node": "bsd-worker-02"},
]

# Columns added after the first release: table -> {column: DDL type}
ADDITIVE_COLUMNS = {
    "users": {
        "language": "VARCHAR NOT NULL DEFAULT 'en'",
    },
    "resources": {
        "node_id": "INTEGER REFERENCES nodes (id) ON DELETE SET NULL",
        "disk": "VARCHAR",
        "created_at": "DATETIME",
    },
    "nodes": {
        "cpu_total": "INTEGER",
        "cpu_used": "INTEGER",
        "mem_total_mb": "INTEGER",
        "mem_used_mb": "INTEGER",
        "disk_total_mb": "INTEGER",
        "disk_used_mb": "INTEGER",
    },
}

# Capacity columns that used to hold "32GB" style text
LEGACY_CAPACITY_COLUMNS = {
    "mem_total": "mem_total_mb",
    "mem_used": "mem_used_mb",
    "disk_total": "disk_total_mb",
    "disk_used": "disk_used_mb",
}


def init_db(database: Database, settings: Settings) -> None:
    """Create schema, migrate and seed"""
    logger.info(f"Initializing database ({database.url})...")

    Base.metadata.create_all(bind=database.engine)
    run_migrations(database)

    db = database.session()
    try:
        seed_defaults(db, settings)
    finally:
        db.close()

    logger.info("Database initialization complete")


def run_migrations(database: Database) -> None:
    """Additive only: adds missing columns and indexes, never drops data"""
    engine = database.engine
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())

    for table, columns in ADDITIVE_COLUMNS.items():
        if table not in tables:
            continue
        existing = {col["name"] for col in inspector.get_columns(table)}
        with engine.begin() as conn:
            for column, ddl in columns.items():
                if column not in existing:
                    conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
                    logger.info(f"Migration: added {table}.{column}")

    _backfill_capacities(database)

    try:
        with engine.begin() as conn:
            conn.execute(text(
                "CREATE UNIQUE INDEX IF NOT EXISTS uq_nodes_single_main ON nodes (role) WHERE role = 'main'"
            ))
    except (IntegrityError, OperationalError) as e:
        logger.warning(f"Migration: could not enforce a single main node: {e}")


def _backfill_capacities(database: Database) -> None:
    inspector = inspect(database.engine)
    node_cols = {col["name"] for col in inspector.get_columns("nodes")}
    legacy = {old: new for old, new in LEGACY_CAPACITY_COLUMNS.items() if old in node_cols}
    if not legacy:
        return

    with database.engine.begin() as conn:
        for old, new in legacy.items():
            rows = conn.execute(text(
                f"SELECT id, {old} FROM nodes WHERE {new} IS NULL AND {old} IS NOT NULL"
            )).fetchall()
            for node_id, value in rows:
                conn.execute(
                    text(f"UPDATE nodes SET {new} = :mb WHERE id = :id"),
                    {"mb": parse_capacity(value), "id": node_id},
                )
            if rows:
                logger.info(f"Migration: backfilled nodes.{new} for {len(rows)} rows")


def _node_from_seed(seed: dict) -> Node:
    return Node(
        name=seed["name"],
        role=seed["role"],
        status=seed["status"],
        ip=seed["ip"],
        cpu_total=seed["cpu_total"],
        cpu_used=seed["cpu_used"],
        mem_total_mb=parse_capacity(seed["mem_total"]),
        mem_used_mb=parse_capacity(seed["mem_used"]),
        disk_total_mb=parse_capacity(seed["disk_total"]),
        disk_used_mb=parse_capacity(seed["disk_used"]),
    )


def seed_defaults(db: Session, settings: Settings) -> None:
    """Each seed checks for its own rows, independently of the others"""
    if db.query(User).count() == 0:
        db.add(User(
            username=DEFAULT_ADMIN_USERNAME,
            password_hash=hash_password(DEFAULT_ADMIN_PASSWORD, rounds=settings.BCRYPT_ROUNDS),
            role=UserRole.ADMIN.value,
            language="en",
        ))
        logger.info("Created default admin user (username: admin, password: admin)")

    main_node = db.query(Node).filter(Node.role == NodeRole.MAIN.value).first()
    if main_node is None:
        main_node = _node_from_seed(MAIN_NODE)
        db.add(main_node)
        logger.info(f"Created main node '{main_node.name}'")

    if db.query(License).count() == 0:
        licensing.seed_trial(db)
        logger.info("Seeded unregistered trial license")

    db.commit()

    if not settings.DEMO_MODE:
        return

    if db.query(Node).filter(Node.role == NodeRole.WORKER.value).count() == 0:
        for seed in DEMO_WORKERS:
            if not db.query(Node).filter(Node.name == seed["name"]).first():
                db.add(_node_from_seed(seed))
        db.commit()
        logger.info(f"Seeded {len(DEMO_WORKERS)} demo worker nodes")

    if db.query(Resource).count() == 0:
        node_ids = {name: node_id for node_id, name in db.query(Node.id, Node.name).all()}
        main_id = main_node.id
        for seed in DEMO_RESOURCES:
            node_id = main_id if seed["node"] == "main" else node_ids.get(seed["node"], main_id)
            db.add(Resource(
                type=seed["type"],
                name=seed["name"],
                status=seed["status"],
                image=seed.get("image"),
                ip=seed.get("ip"),
                cpu=seed.get("cpu"),
                memory=seed.get("memory"),
                disk=seed.get("disk"),
                node_id=node_id,
            ))
        db.commit()
        logger.info(f"Seeded {len(DEMO_RESOURCES)} demo resources")
