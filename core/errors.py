"""Application error definitions and FastAPI handlers."""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from core.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, code: str = "error"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class NotFoundException(AppException):
    def __init__(self, message: str = "Record not found"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND, code="not_found")


class ValidationAppException(AppException):
    def __init__(self, message: str = "Invalid data"):
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, code="validation_error")


class InvalidCandidate(AppException):
    """An order candidate that cannot be keyed. The whole batch is rejected."""

    def __init__(self, message: str = "Order candidate cannot be keyed", index: Optional[int] = None):
        if index is not None:
            message = f"Order #{index + 1}: {message}"
        self.index = index
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, code="invalid_candidate")


class TransientStoreFailure(AppException):
    def __init__(self, message: str = "The store is temporarily unavailable, try again"):
        super().__init__(
            message=message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, code="transient_store_failure"
        )


class ConstraintViolation(AppException):
    """Unique-key conflict.

    ``retryable`` is set when the conflict was raised by the store itself, i.e.
    a concurrent writer may have claimed the key between our read and write.
    """

    def __init__(self, message: str = "Conflicting record already exists", retryable: bool = False):
        self.retryable = retryable
        super().__init__(message=message, status_code=status.HTTP_409_CONFLICT, code="constraint_violation")


def _format_error(detail: str, code: str):
    return {"message": detail, "code": code}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=_format_error(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_format_error("Submitted data could not be validated", "validation_error"),
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_format_error("Submitted data could not be validated", "validation_error"),
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Unhandled storage error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_format_error("Storage error", "store_error"),
        )
