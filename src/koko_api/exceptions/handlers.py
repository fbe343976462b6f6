from fastapi import status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from koko_api.exceptions.exceptions import (
    ResourceNotFoundError,
    ForbiddenError,
    BadRequestError,
    ConfigurationError,
    ProviderError,
    UnauthorizedError,
)
from koko_api.schema import ApiResponse
import logging

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(success=False, message=message, error=error).model_dump(),
    )


async def resource_not_found_handler(request: Request, exc: ResourceNotFoundError):
    logger.warning(f"Resource not found: {str(exc)}")
    return _error_response(status.HTTP_404_NOT_FOUND, "Resource not found", str(exc))


async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    logger.warning(f"Unauthorized: {str(exc)}")
    return _error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized", str(exc))


async def forbidden_handler(request: Request, exc: ForbiddenError):
    logger.warning(f"Forbidden: {str(exc)}")
    return _error_response(status.HTTP_403_FORBIDDEN, "Forbidden", str(exc))


async def bad_request_handler(request: Request, exc: BadRequestError):
    logger.warning(f"Bad request: {str(exc)}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", str(exc))


async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {str(exc)}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Service misconfigured",
        "Video storage is not configured.",
    )


async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error(f"Video provider error: {str(exc)}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, "Video provider unavailable", str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    return _error_response(
        422,
        "Invalid request",
        "; ".join(_describe(err) for err in exc.errors()),
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "An unexpected error occurred. Please try again.",
    )


def _describe(err: dict) -> str:
    location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return f"{location}: {err.get('msg')}" if location else str(err.get("msg"))
