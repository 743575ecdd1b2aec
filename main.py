"""
FitMeal Pro FastAPI Application
Main entry point: lifespan, middleware, exception handlers and routers
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uvicorn
from contextlib import asynccontextmanager
import anyio

from api.routes import (
    admin,
    auth,
    billing,
    customers,
    health,
    ingredients,
    meal_plans,
    pdf,
    progress,
    recipes,
)

from domain.models import init_database
from adapters import mail_adapter, openai_adapter

from app.config import settings

from api.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    validation_exception_handler,
    http_exception_handler,
    fitmeal_exception_handler,
    general_exception_handler,
)
from app.exceptions import FitMealError

# Setup logging with configured level and format
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()), format=settings.log_format
)
_logger = logging.getLogger("fitmeal.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.
    Creates the schema with retries and closes the HTTP clients on exit.
    """
    _logger.info("Starting FitMeal Pro in %s mode", settings.environment.value)

    for attempt in range(1, settings.db_init_attempts + 1):
        try:
            # Blocking call; keep it off the event loop
            await anyio.to_thread.run_sync(init_database)
            _logger.info("Database initialization succeeded")
            break
        except Exception as exc:
            _logger.warning(
                "Database init attempt %d/%d failed: %s",
                attempt,
                settings.db_init_attempts,
                exc,
            )
            if attempt < settings.db_init_attempts:
                await anyio.sleep(settings.db_init_delay_sec)
            else:
                _logger.error("Database initialization failed after %d attempts", attempt)
                raise

    try:
        yield
    finally:
        _logger.info("Shutting down FitMeal Pro")
        mail_adapter.close()
        openai_adapter.close()


app = FastAPI(
    title=settings.api_title,
    version=settings.app_version,
    description=settings.api_description,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_url=(
        f"{settings.api_prefix}/openapi.json" if not settings.is_production() else None
    ),
    docs_url=f"{settings.api_prefix}/docs" if not settings.is_production() else None,
    redoc_url=f"{settings.api_prefix}/redoc" if not settings.is_production() else None,
)

# Middleware runs in reverse order of registration: logging wraps everything
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_request_size)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(FitMealError, fitmeal_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

for module in (
    health,
    auth,
    ingredients,
    recipes,
    meal_plans,
    customers,
    progress,
    pdf,
    admin,
    billing,
):
    app.include_router(module.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
