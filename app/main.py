from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from db.config import DATABASE_URL_ENV


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before the application or any database connection is built.
    Raises RuntimeError naming every missing or invalid variable.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    database_url = os.getenv(DATABASE_URL_ENV, "").strip()
    if not database_url:
        errors.append(f"{DATABASE_URL_ENV} is not set. Provide the PostgreSQL connection string.")
    elif not database_url.startswith(("postgres://", "postgresql")):
        errors.append(f"{DATABASE_URL_ENV} must be a PostgreSQL URL.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the Database handle, confirm connectivity, dispose on exit."""
    from db.session import Database

    database = Database.from_env()
    try:
        database.ping()
    except Exception:
        database.dispose()
        raise
    application.state.database = database
    logging.getLogger(__name__).info("Database connectivity confirmed")
    try:
        yield
    finally:
        application.state.database = None
        database.dispose()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Tabular Records API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import ingestion_router, records_router

    application.include_router(ingestion_router)
    application.include_router(records_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


def __getattr__(name: str) -> object:
    # `uvicorn app.main:app` resolves the attribute here, so importing this
    # module does not require DATABASE_URL.
    if name == "app":
        application = create_app()
        globals()["app"] = application
        return application
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
