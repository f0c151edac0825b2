"""
Workflow Designer - sandbox backend
In-memory implementation of the workflow backend contract for local runs and tests
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_designer.api.routes import auth, catalog, health, workflows
from workflow_designer.config import settings
from workflow_designer.services.sandbox_store import SandboxStore

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting %s sandbox on %s environment", settings.app_name, settings.app_env)
    yield
    logger.info("Shutting down %s sandbox...", settings.app_name)


def create_app(store: SandboxStore | None = None) -> FastAPI:
    app = FastAPI(
        title=f"{settings.app_name} Sandbox",
        description="In-memory workflow backend for the designer client",
        version="1.0.0",
        lifespan=lifespan,
        debug=settings.app_debug,
    )
    app.state.store = store or SandboxStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(catalog.router, prefix=settings.api_prefix, tags=["Catalog"])
    app.include_router(workflows.router, prefix=f"{settings.api_prefix}/workflows", tags=["Workflows"])
    return app


app = create_app()
