from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy import text
import time
import logging

from leave_api.core.config import settings
from leave_api.core.database import engine
from leave_api.core.exceptions import AppError, ValidationError, UnexpectedError
from leave_api.api.v1.router import api_router
from leave_api.core.logging_config import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)
access_logger = logging.getLogger("access")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Leave Management API server...")
    async with engine.connect() as conn:
        # Tables are created via Alembic migrations
        await conn.execute(text("SELECT 1"))
    logger.info("Leave Management API server started successfully")
    yield
    # Shutdown
    logger.info("Shutting down Leave Management API server...")
    await engine.dispose()


app = FastAPI(
    title="Leave Management API",
    description="Leave requests, approvals and statistics for employees and admins",
    version="1.0.0",
    lifespan=lifespan,
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        access_logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Duration: {process_time:.3f}s - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        return response
    except Exception:
        process_time = time.time() - start_time
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}",
            exc_info=True,
            extra={
                "method": request.method,
                "path": str(request.url.path),
                "client": request.client.host if request.client else 'unknown',
                "duration": f"{process_time:.3f}s"
            }
        )
        raise


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def envelope_error(status_code: int, message: str, error: str = None, errors: dict = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, ValidationError):
        return envelope_error(exc.status_code, exc.message, errors=exc.errors)
    if isinstance(exc, UnexpectedError):
        # Only non-production responses reveal what went wrong
        detail = None if settings.is_production else exc.detail
        return envelope_error(exc.status_code, exc.message, error=detail)
    return envelope_error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return envelope_error(exc.status_code, "API endpoint not found")
    return envelope_error(exc.status_code, str(exc.detail))


# Custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return field-keyed validation errors to help users fix their input."""
    errors = {}
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix from the location
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        message = error["msg"]
        if error["type"] == "missing":
            message = f"{field} is required"
        elif message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)

    return envelope_error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationError.default_message,
        errors=errors,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception in {request.method} {request.url.path}", exc_info=exc)
    detail = None if settings.is_production else f"{type(exc).__name__}: {exc}"
    return envelope_error(status.HTTP_500_INTERNAL_SERVER_ERROR, UnexpectedError.default_message, error=detail)


# Include routers
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
