"""FastAPI application."""

import subprocess

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import get_settings
from api.middleware.error_handler import (
    api_exception_handler,
    global_exception_handler,
    http_exception_handler,
    response_validation_exception_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler,
)
from api.middleware.logging import LoggingMiddleware
from api.middleware.rate_limit import RateLimitMiddleware
from api.routers import (
    auth,
    automation,
    automations,
    contracts,
    health,
    houses,
    notifications,
    residents,
    transactions,
)
from api.shared.exceptions import APIException
from database.config import DatabaseConfig
from database.manager import DatabaseManager
from logger import get_logger

settings = get_settings()
logger = get_logger("api.main")

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    docs_url=settings.docs_url,
    redoc_url=settings.redoc_url,
    openapi_url=settings.openapi_url,
)


@app.on_event("startup")
async def startup_event():
    """Create the database if needed and apply migrations."""
    if not settings.run_migrations_on_startup:
        return

    try:
        logger.info("Initializing database...")

        db_manager = DatabaseManager(DatabaseConfig.from_env())
        await db_manager.create_database_if_not_exists()
        await db_manager.close()

        logger.info("Applying Alembic migrations...")
        result = subprocess.run(["alembic", "upgrade", "head"], capture_output=True, text=True)

        if result.returncode == 0:
            logger.info("Migrations applied")
        else:
            # Keep serving so the failure can be diagnosed
            logger.error(f"Migration failed: {result.stderr}")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Rate limiting middleware
app.add_middleware(
    RateLimitMiddleware,
    per_minute=settings.rate_limit_per_minute,
    per_hour=settings.rate_limit_per_hour,
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# Exception handlers
app.add_exception_handler(APIException, api_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ResponseValidationError, response_validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(automations.router)
app.include_router(automation.router)
app.include_router(houses.router)
app.include_router(residents.router)
app.include_router(contracts.router)
app.include_router(transactions.router)
app.include_router(notifications.router)


@app.get("/")
async def root():
    return {
        "message": settings.api_title,
        "version": settings.api_version,
        "docs": settings.docs_url,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )
