"""Error types and their JSON error responses."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus

from starlette.responses import JSONResponse


@dataclass(frozen=True)
class ErrorResponse:
    """An error body sent to clients together with its HTTP status."""

    error: str
    message: str
    code: HTTPStatus

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", HTTPStatus(self.code))

    def to_dict(self) -> dict[str, str]:
        """Return the serialised body; the status code is not part of it."""
        return {"error": self.error, "message": self.message}

    def response(self) -> JSONResponse:
        """Build the HTTP response carrying this error."""
        return JSONResponse(self.to_dict(), status_code=int(self.code))


class SchemaError(Exception):
    """A failure while working with a database schema."""

    def error_response(self) -> ErrorResponse:
        """Describe this error to a client."""
        return ErrorResponse(
            "INTERNAL_ERROR",
            "Internal Fatal Server Error",
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )


class NotFoundError(SchemaError):
    """The requested row does not exist."""

    def __init__(self) -> None:
        super().__init__("Not Found")

    def error_response(self) -> ErrorResponse:
        return ErrorResponse(
            "NOT_FOUND",
            "Requested content was not found.",
            HTTPStatus.NOT_FOUND,
        )


class FatalSchemaError(SchemaError):
    """An unexpected database failure."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Fatal database error: {cause}")
        self.cause = cause
        self.__cause__ = cause


def schema_error_from(exc: BaseException) -> SchemaError:
    """Classify a database exception as a schema error.

    A missing row (``LookupError``) becomes :class:`NotFoundError`; anything
    else becomes :class:`FatalSchemaError`.
    """
    if isinstance(exc, SchemaError):
        return exc
    if isinstance(exc, LookupError):
        error = NotFoundError()
        error.__cause__ = exc
        return error
    return FatalSchemaError(exc)


class _WrappingError(Exception):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.__cause__ = cause


class BlogServiceError(_WrappingError):
    """The blog service failed because of a schema or database error."""


class ApiServerError(_WrappingError):
    """The API server failed because of a service or I/O error."""