"""
Mobile Sync Application Factory
===============================

Pusat perakitan aplikasi FastAPI menggunakan Application Factory Pattern.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time
import uuid

# Import semua router dari modulnya masing-masing
from .routes import (
    mobile_sync_router, import_router, reconciliation_router, sync_log_router
)

# Import services dan dependencies
from .services.exceptions import (
    SyncException, ValidationError, NotFoundError, BusinessRuleError,
    PersistenceError, ReconciliationError
)
from .responses import APIResponse
from .database import init_models
from .logging_config import setup_logging
from .config import settings

logger = logging.getLogger(__name__)

def setup_middleware(app: FastAPI):
    """Setup semua middleware aplikasi."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

    @app.middleware("http")
    async def add_request_id_and_process_time(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id
        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {process_time:.3f}s",
            extra={'request_id': request_id, 'duration': process_time}
        )
        return response

def _error_response(request: Request, exc: SyncException, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse.error(
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details,
            request_id=getattr(request.state, 'request_id', None)
        )
    )

def setup_exception_handlers(app: FastAPI):
    """Setup semua custom exception handlers."""
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(request: Request, exc: NotFoundError):
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND)

    @app.exception_handler(BusinessRuleError)
    async def business_rule_exception_handler(request: Request, exc: BusinessRuleError):
        return _error_response(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY)

    @app.exception_handler(PersistenceError)
    async def persistence_exception_handler(request: Request, exc: PersistenceError):
        logger.error(f"Persistence error: {exc.message}")
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(ReconciliationError)
    async def reconciliation_exception_handler(request: Request, exc: ReconciliationError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse.error(
                message="An unexpected error occurred",
                error_code="INTERNAL_ERROR",
                request_id=getattr(request.state, 'request_id', None)
            )
        )

def setup_routes(app: FastAPI):
    """Daftarkan (include) semua router ke aplikasi."""
    # Endpoint sistem
    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "healthy", "timestamp": time.time()}

    @app.get("/", tags=["System"])
    async def root():
        return {"message": "Mobile Sync API", "version": "1.0.0", "docs": "/docs"}

    # Mobile sync workflow routers
    app.include_router(mobile_sync_router, prefix="/api/mobile-sync", tags=["Mobile Sync"])
    app.include_router(import_router, prefix="/api/mobile-import", tags=["Mobile Import"])
    app.include_router(reconciliation_router, prefix="/api/reconciliation", tags=["Reconciliation"])
    app.include_router(sync_log_router, prefix="/api/sync-logs", tags=["Sync Logs"])

def create_app() -> FastAPI:
    """
    Application Factory: Membuat dan mengkonfigurasi instance FastAPI.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Kode yang dijalankan saat startup
        setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
        if settings.AUTO_CREATE_TABLES:
            await init_models()
        logger.info("Mobile Sync API starting up")
        yield
        # Kode yang dijalankan saat shutdown
        logger.info("Mobile Sync API shutting down")

    # 1. Buat instance FastAPI
    app = FastAPI(
        title="Mobile Order Sync API",
        description="Intake, review dan import order dari device sales rep",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # 2. Setup Middleware
    setup_middleware(app)

    # 3. Setup Exception Handlers
    setup_exception_handlers(app)

    # 4. Setup Routes
    setup_routes(app)

    logger.debug("FastAPI app created and configured")
    return app

# Dependency injectors and other utilities are defined in their own modules
# such as app.dependencies and app.responses to avoid circular imports.
