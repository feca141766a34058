from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from product_grouping import __version__
from product_grouping.api.middleware.error_handler import (
    handle_generic_error,
    handle_grouping_error,
    handle_integrity_error,
    handle_validation_error,
)
from product_grouping.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from product_grouping.api.v1 import router as v1_router
from product_grouping.api.v1.health import router as health_router
from product_grouping.config import settings
from product_grouping.core.exceptions import GroupingError


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level)
    yield
    # Shutdown


def create_app() -> FastAPI:
    app = FastAPI(
        title="Product Grouping API",
        description="Fuzzy product deduplication and grouping for receipt data",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(GroupingError, handle_grouping_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
