# orderdesk/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time

from orderdesk.core.config import settings
from orderdesk.core.exceptions import (
    BranchCodeTakenError,
    BranchNotFoundError,
    DispatchError,
    DuplicateSubscriptionError,
    InvalidTransitionError,
    NoActiveSubscriptionError,
    OrderDeskError,
    PlanDowngradeBlockedError,
    QuotaExceededError,
    ScopeViolationError,
    SubscriptionNotFoundError,
    TenantCodeTakenError,
    TenantContextMissingError,
    TenantNotFoundError,
    UnknownPlanError,
    UserEmailTakenError,
    UserNotFoundError,
)
from orderdesk.core.logging import logger
from orderdesk.db.database import init_db, close_db
from orderdesk.api.v1.router import api_router

ERROR_STATUS = {
    TenantNotFoundError: status.HTTP_404_NOT_FOUND,
    BranchNotFoundError: status.HTTP_404_NOT_FOUND,
    SubscriptionNotFoundError: status.HTTP_404_NOT_FOUND,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    NoActiveSubscriptionError: status.HTTP_404_NOT_FOUND,
    QuotaExceededError: status.HTTP_403_FORBIDDEN,
    PlanDowngradeBlockedError: status.HTTP_403_FORBIDDEN,
    DuplicateSubscriptionError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    TenantCodeTakenError: status.HTTP_409_CONFLICT,
    BranchCodeTakenError: status.HTTP_409_CONFLICT,
    UserEmailTakenError: status.HTTP_409_CONFLICT,
    UnknownPlanError: status.HTTP_400_BAD_REQUEST,
    TenantContextMissingError: status.HTTP_400_BAD_REQUEST,
    ScopeViolationError: status.HTTP_400_BAD_REQUEST,
    DispatchError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: OrderDeskError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME} API")
    await init_db()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME} API")
    await close_db()


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=("/api/docs" if settings.ENVIRONMENT == "development" else None),
    redoc_url=("/api/redoc" if settings.ENVIRONMENT == "development" else None),
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Include routers
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(OrderDeskError)
async def domain_exception_handler(request: Request, exc: OrderDeskError):
    """Map domain errors to HTTP responses"""
    status_code = status_for(exc)
    context = getattr(request.state, "tenant_context", None)
    logger.info(
        f"{request.method} {request.url.path} rejected with {status_code}: {exc.message}",
        extra=context.log_extra if context else {},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.exception("Unhandled exception while handling request", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
