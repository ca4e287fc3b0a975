"""DogCal pup hangout scheduling service."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dogcal.core.config import settings
from dogcal.core.database import create_db_and_tables
from dogcal.core.errors import SchedulingError
from dogcal.core.scheduler import shutdown_scheduler, start_scheduler
from dogcal.routes import hangouts, suggestions

# Configure logging
log_dir = Path.home() / ".logs" / "dogcal"
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting DogCal")
    create_db_and_tables()
    if settings.completion_sweep_enabled:
        start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("DogCal shut down")


app = FastAPI(
    title=settings.app_name,
    description="Shared pup-care calendar: hangouts, recurring series and friend suggestions",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for the web client
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Render domain errors as ``{"detail": message}`` with their HTTP status."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(hangouts.router)
app.include_router(suggestions.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
