import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401 - registers tables on Base
from .bootstrap import ensure_admin, purge_expired_otps, seed_services
from .config import API_PREFIX, ENVIRONMENT, FRONTEND_ORIGINS, SECURITY_HEADERS_ENABLED, SEED_SERVICES
from .database import Base, SessionLocal, engine
from .domain.admin.router import router as admin_router
from .domain.auth.router import router as auth_router
from .domain.bookings.router import router as bookings_router
from .domain.catalog.router import router as services_router
from .domain.users.router import router as users_router
from .domain.workers.router import router as workers_router
from .exceptions import HandyHubError
from .media_store import MediaStoreError
from .schemas import error_body
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    db = SessionLocal()
    try:
        ensure_admin(db)
        if SEED_SERVICES:
            seed_services(db)
        purge_expired_otps(db)
    except Exception as e:
        logger.error(f"❌ Bootstrap failed: {e}")
    finally:
        db.close()

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limited endpoints will answer 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="HandyHub API", version="1.0.0", lifespan=lifespan)


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(HandyHubError)
async def handyhub_error_handler(request: Request, exc: HandyHubError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten Pydantic errors into ``[{field, message}]``"""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        errors.append({"field": ".".join(loc), "message": message})

    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content=error_body("Validation errors", errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


@app.exception_handler(MediaStoreError)
async def media_store_error_handler(request: Request, exc: MediaStoreError):
    logger.error(f"❌ Media store failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content=error_body("File storage is unavailable, please try again later"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}\n{traceback.format_exc()}")
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# ============================================================================
# MIDDLEWARE
# ============================================================================

if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=[f"{API_PREFIX}/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

ALLOWED_ORIGINS = [origin.strip() for origin in FRONTEND_ORIGINS.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(workers_router, prefix=API_PREFIX)
app.include_router(services_router, prefix=API_PREFIX)
app.include_router(bookings_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/health")
def health():
    return {
        "success": True,
        "message": "HandyHub API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": ENVIRONMENT,
    }
