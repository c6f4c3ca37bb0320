# app/core/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(StarletteHTTPException):
    """
    Base class for errors raised by services.

    Only `status_code` and `detail` (the human-readable message) ever
    reach the client; both have per-class defaults.
    """

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default: str = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
        )

    @property
    def message(self) -> str:
        return self.detail


class BadRequestError(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Bad request"


class UnauthorizedError(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Not authorized"


class NotFoundError(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Not found"


class ConflictError(AppError):
    status_code_default = status.HTTP_409_CONFLICT
    message_default = "Conflict"


class InternalError(AppError):
    pass


def _message_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    """
    Flatten pydantic errors into one line, e.g. "body.email: value is not a valid email address".
    Only the first error is reported.
    """
    errors = jsonable_encoder(exc.errors())
    if not errors:
        return "Bad request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


def install_exception_handlers(app: FastAPI) -> None:
    """
    Render every failure as {"message": ...}.

      - AppError / HTTPException -> its own status + message
      - unmatched route          -> 404 "Route not found"
      - body/path validation     -> 400
      - anything else            -> 500 "Server error" (traceback logged only)
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc, AppError):
            return _message_response(exc.status_code, exc.detail, exc.headers)
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _message_response(exc.status_code, "Route not found")
        return _message_response(exc.status_code, str(exc.detail), exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _message_response(
            status.HTTP_400_BAD_REQUEST,
            _validation_message(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _message_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            InternalError.message_default,
        )
