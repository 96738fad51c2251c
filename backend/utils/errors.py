# utils/errors.py
import logging
from typing import Iterable, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from schemas.errors import ErrorResponse, FieldError

logger = logging.getLogger(__name__)


class ValidationFailed(Exception):
    """One or more field-tagged validation errors.

    Raised by domain helpers and route handlers; rendered as HTTP 400 with an
    ``{"errors": [{"field": ..., "message": ...}]}`` body.
    """

    def __init__(self, errors: Iterable[FieldError]):
        self.errors: List[FieldError] = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls([FieldError(field=field, message=message)])

    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


def _field_from_location(loc) -> str:
    # ("body", "startTime") -> "startTime"; ("body", 2, "startTime") -> "startTime"
    parts = [str(p) for p in loc if not isinstance(p, int) and p not in ("body", "query", "path")]
    return parts[-1] if parts else "body"


def _error_response(errors: List[FieldError]) -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorResponse(errors=errors).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed):
        logger.info("Validation failed on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(exc.errors)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        errors = [FieldError(field=_field_from_location(e.get("loc", ())), message=e.get("msg", "Invalid value"))
                  for e in exc.errors()]
        logger.info("Invalid request on %s %s: %s", request.method, request.url.path, [e.field for e in errors])
        return _error_response(errors)
