"""Global error handling. Every error response uses the `{success: false, error}` envelope."""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.shared.exceptions import APIException
from config.settings import settings
from logger import format_log, get_logger

logger = get_logger("api.errors")


def _error_response(status_code: int, error: str, headers: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, **extra},
        headers=headers,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors: logged with traceback, generic message to the client."""
    logger.opt(exception=exc).error(
        format_log("Unhandled exception", method=request.method, path=request.url.path, error=repr(exc))
    )
    extra = {"detail": str(exc)} if settings.debug else {}
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", **extra)


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, headers=exc.headers, **exc.payload)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, method not allowed)."""
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies are client errors (400)."""
    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if error.get("ctx"):
            error_dict["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error_dict)

    missing = [str(e["loc"][-1]) for e in errors if e["type"] == "missing" and e["loc"]]
    message = f"Missing required fields: {', '.join(missing)}" if missing else "Validation error"
    return _error_response(status.HTTP_400_BAD_REQUEST, message, detail=errors)


async def response_validation_exception_handler(request: Request, exc: ResponseValidationError) -> JSONResponse:
    logger.error(format_log("Response validation error", path=request.url.path, errors=exc.errors()))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.opt(exception=exc).error(format_log("Database error", path=request.url.path, error=repr(exc)))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
