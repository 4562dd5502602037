from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from moneyapp.api.deps import close_provider
from moneyapp.api.middleware.error_handler import (
    handle_generic_error,
    handle_integrity_error,
    handle_money_app_error,
    handle_validation_error,
)
from moneyapp.api.middleware.logging import RequestLoggingMiddleware
from moneyapp.api.v1 import router as v1_router
from moneyapp.api.v1.health import router as health_router
from moneyapp.config import settings
from moneyapp.core.exceptions import MoneyAppError
from moneyapp.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level, json_output=settings.log_json)
    yield
    # Shutdown
    await close_provider()


def create_app() -> FastAPI:
    app = FastAPI(
        title="MoneyApp API",
        description="Bank account sync, transaction categorization, budgets and savings goals",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(MoneyAppError, handle_money_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
