import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.v1 import auth, nodes, resources, system, users, websocket
from config import DEFAULT_SECRET_KEY, Settings, load_settings
from core.domain_events import EventTypes
from core.errors import Conflict, InternalError, PanelError
from core.events import EventBus, EventPriority
from core.logging_config import setup_logging
from core.resource_manager import ResourceManager
from database.bootstrap import init_db
from database.session import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is the built-in default; set secretKey in config.json or CLOUDBSD_SECRET_KEY")

    database = Database(settings.DATABASE_URL)
    init_db(database, settings)
    app.state.database = database

    heartbeat: Optional[asyncio.Task] = None
    if settings.DEMO_MODE and settings.HEARTBEAT_INTERVAL_SECONDS > 0:
        heartbeat = asyncio.create_task(
            websocket.demo_heartbeat(app.state.event_bus, settings.HEARTBEAT_INTERVAL_SECONDS)
        )

    logger.info(f"CloudBSD admin API ready (demo_mode={settings.DEMO_MODE})")
    try:
        yield
    finally:
        if heartbeat is not None:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat
        database.dispose()


def _error_response(error: PanelError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_detail()})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PanelError)
    async def panel_error_handler(request: Request, exc: PanelError):
        return _error_response(exc)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Constraint violation on {request.method} {request.url.path}: {exc.orig}")
        return _error_response(Conflict("Request conflicts with existing data"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        # Detail stays in the server log
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(InternalError())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(title="CloudBSD Admin API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    event_bus = EventBus()
    ws_manager = websocket.WebSocketManager()
    event_bus.subscribe(EventTypes.RESOURCE_UPDATE, ws_manager.on_resource_update, EventPriority.NORMAL)
    app.state.event_bus = event_bus
    app.state.ws_manager = ws_manager
    app.state.resource_manager = ResourceManager(event_bus)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/api/health", tags=["Health"])
    def health_check():
        return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}

    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(nodes.router, prefix="/api")
    app.include_router(system.router, prefix="/api")
    app.include_router(websocket.router, prefix="/api")
    # Catch-all /{resource} routes go last
    app.include_router(resources.router, prefix="/api")

    return app


def run() -> None:
    settings = load_settings()
    setup_logging("cloudbsd-admin", level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

    ssl_options = {}
    if settings.SSL_ENABLED:
        ssl_options = {"ssl_certfile": settings.SSL_CERT_PATH, "ssl_keyfile": settings.SSL_KEY_PATH}
        logger.info("SSL/TLS enabled")

    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT, **ssl_options)


if __name__ == "__main__":
    run()
