"""
umkm_registry/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Opens the storage backend (MongoDB or local fallback)
- Registers API routes
- No business logic should be written here
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from umkm_registry.core.config import settings, validate_settings
from umkm_registry.core.errors import add_exception_handlers
from umkm_registry.core.logging import setup_logging, get_logger
from umkm_registry.db.storage import open_storage, close_storage, get_storage
from umkm_registry.db.indexes import create_indexes
from umkm_registry.services.auth_service import normalize_identifiers
from umkm_registry.api import auth, umkm, users

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Starting UMKM registry...")

    try:
        validate_settings()
        logger.info("Configuration validated")

        storage = await open_storage()
        logger.info(f"Storage backend ready: {storage.name}")

        # Legacy records must carry ids before the unique indexes exist
        await normalize_identifiers()

        await create_indexes(storage)

        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Debug Mode: {settings.DEBUG}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("Shutting down UMKM registry...")

    try:
        await close_storage()
        logger.info("UMKM registry shut down")
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="UMKM Registry",
    description="Micro-business registry for neighborhood associations (RW)",
    version=VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Auth"])
app.include_router(umkm.router, prefix=settings.API_PREFIX, tags=["UMKM"])
app.include_router(users.router, prefix=settings.API_PREFIX, tags=["Users"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "UMKM Registry API",
        "version": VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Reports which storage backend is active and whether it responds.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": VERSION,
        "checks": {}
    }

    try:
        storage = get_storage()
        healthy = await storage.ping()
        health_status["checks"]["storage"] = storage.name if healthy else "unhealthy"
        if not healthy:
            health_status["status"] = "degraded"
    except RuntimeError as e:
        logger.error(f"Storage health check failed: {str(e)}")
        health_status["checks"]["storage"] = "unavailable"
        health_status["status"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    try:
        if await get_storage().ping():
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "storage_unavailable"}
        )
    except RuntimeError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": str(e)}
        )


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "umkm_registry.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
