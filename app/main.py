import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from app.core.db import init_db, close_db
from app.api.v1.users import router as users_router
from app.api.v1.cron import router as cron_router
from app.consumers.outbox_dispatcher import start_outbox_dispatcher, stop_outbox_dispatcher
from app.core.config import PROJECT_NAME, VERSION, OUTBOX_DISPATCHER_ENABLED
from app.core.exception_handlers import setup_exception_handlers

log = logging.getLogger("uvicorn")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas
    dispatcher = None
    if OUTBOX_DISPATCHER_ENABLED:
        # Events enqueued before startup are picked up by the first, immediate poll
        dispatcher = await start_outbox_dispatcher()
    yield
    if dispatcher is not None:
        await stop_outbox_dispatcher(dispatcher, release_storage=False)
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(users_router, prefix="/api/v1/users", tags=["User Management"])
app.include_router(cron_router, prefix="/api/v1/cron", tags=["Scheduled Jobs"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
