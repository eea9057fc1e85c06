"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from reservio.config import settings
from reservio.database import Base, engine
from reservio.exceptions import ReservioError, StoreUnavailableError, ValidationError
from reservio.logging_config import setup_logging
from reservio.routers import events, registrations, stats

# Import all models so Base.metadata knows about them
import reservio.models  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Reservio",
    description="Event reservations — publish events, request seats, confirm bookings",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservioError)
def handle_reservio_error(request: Request, exc: ReservioError) -> JSONResponse:
    logger.info("%s %s refused (%s): %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input gets the same shape as the services' ValidationError."""
    detail = "; ".join(_describe_validation_error(error) for error in exc.errors())
    logger.info("%s %s rejected input: %s", request.method, request.url.path, detail)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"detail": detail, "code": ValidationError.code},
    )


@app.exception_handler(OperationalError)
def handle_store_error(request: Request, exc: OperationalError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=StoreUnavailableError.status_code,
        content={"detail": "The data store is unavailable, please retry.", "code": StoreUnavailableError.code},
    )


# Register routers
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(registrations.router, prefix="/api/registrations", tags=["Registrations"])
app.include_router(stats.router, prefix="/api/stats", tags=["Stats"])


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
