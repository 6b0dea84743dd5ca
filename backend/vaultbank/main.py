"""VaultBank - online banking demo API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vaultbank.config import Settings, get_settings
from vaultbank.exceptions import BankingError
from vaultbank.logging_config import setup_logging
from vaultbank.rate_limit import RateLimitMiddleware, build_rate_limiters

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create tables and the bootstrap admin
    from vaultbank.database import Base, engine, get_db_context
    from vaultbank.services.admin import bootstrap_admin
    from vaultbank.services.password_reset import purge_expired_tokens

    # Import all models so they're registered with Base
    from vaultbank import models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    with get_db_context() as db:
        bootstrap_admin(db)
        purged = purge_expired_tokens(db)
    if purged:
        logger.info(f"Purged {purged} expired password reset tokens")

    yield


async def banking_error_handler(request: Request, exc: BankingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Rate-limit policies are fixed here for the app's lifetime."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Online banking demo: accounts, transfers and an admin dashboard",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(BankingError, banking_error_handler)

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.rate_limit_enabled:
        app.state.rate_limiters = build_rate_limiters(settings)
        app.add_middleware(
            RateLimitMiddleware,
            limiters=app.state.rate_limiters,
            trusted_proxy_hops=settings.trusted_proxy_hops,
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    from vaultbank.api import accounts, admin, auth, transactions, users

    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(accounts.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    return app


setup_logging(get_settings().log_level)
app = create_app()
