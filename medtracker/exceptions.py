"""
Application error type and the handlers that turn errors into JSON.

Every domain error derives from ``AppException`` and carries its own HTTP
status. Client errors are logged at WARNING and server errors at ERROR,
tagged with the request id set by ``RequestLoggingMiddleware``.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base class for errors that map onto an HTTP response.

    Attributes:
        status_code: HTTP status returned to the client
        detail: Human readable message returned to the client
    """
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


async def app_exception_handler(request: Request, exc: AppException):
    """
    Render an ``AppException`` as ``{"detail": ...}`` with its status.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Error response
    """
    message = f"Request {_request_id(request)} {request.method} {request.url.path} -> {exc.status_code}: {exc.detail}"
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(message)
    else:
        logger.warning(message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Render body, path and query validation failures as 422.

    Returns:
        JSONResponse: ``{"detail": "Validation error", "errors": [...]}``
    """
    logger.warning(f"Request {_request_id(request)} failed validation on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": jsonable_encoder(exc.errors())
        }
    )


def register_exception_handlers(app):
    """Attach the application's exception handlers to ``app``"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
