import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.dal import Database
from .db.schema import init_db
from .db.seed import seed_rates
from .routers import health, rates


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logging.getLogger("remit_rates").exception("failed to initialise database")
        raise
    if settings.seed_on_startup:
        seed_rates(Database(settings.db_path))  # type: ignore[arg-type]

    app = FastAPI(
        title=settings.app_name,
        description="API for managing and comparing remittance provider rates",
        version=settings.version,
    )
    app.state.settings = settings
    app.state.expose_errors = settings.debug

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(errors.RateValidationError, errors.rate_validation_handler)
    app.add_exception_handler(errors.RateNotFoundError, errors.rate_not_found_handler)
    app.add_exception_handler(
        errors.UnsupportedCurrencyError, errors.unsupported_currency_handler
    )
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(rates.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()
