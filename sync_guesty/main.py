# sync_guesty/main.py

import structlog
from fastapi import FastAPI

from sync_guesty.logging_config import setup_logging
from sync_guesty.middleware import RequestIDMiddleware
from sync_guesty.routes.health import router as health_router
from sync_guesty.routes.metrics import router as metrics_router
from sync_guesty.routes.sync import router as sync_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Guesty Listing Sync API",
    description="Mirrors Guesty listings into the local database and archives removed ones",
    version="1.0.0",
)

app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(sync_router, prefix="/guesty", tags=["Sync"])


@app.on_event("startup")
def startup_event() -> None:
    """Fail fast when the data store is not configured."""
    from sync_guesty.db.engine import get_engine

    logger.info("FastAPI application starting up...")

    engine = get_engine()

    logger.info("FastAPI application initialized", database=engine.url.render_as_string(hide_password=True))
