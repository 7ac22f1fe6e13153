from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.application.use_cases.notifications import MaintenanceScheduler
from app.config import get_settings
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.notifications import ConnectionRegistry, NotificationPublisher
from app.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and start maintenance; stop it again on shutdown."""

    initialize_database()
    scheduler: MaintenanceScheduler = app.state.maintenance_scheduler
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(lifespan=lifespan)

    # One registry per process, shared by the websocket handler and the dispatchers.
    registry = ConnectionRegistry(send_timeout=settings.websocket_send_timeout_seconds)
    app.state.connection_registry = registry
    app.state.notification_publisher = NotificationPublisher(registry)
    app.state.maintenance_scheduler = MaintenanceScheduler.from_settings(SessionLocal, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:4200", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
