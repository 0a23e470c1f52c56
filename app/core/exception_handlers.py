import logging
from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from tortoise.exceptions import DBConnectionError, IntegrityError, OperationalError
from app.schemas.response import ErrorDetail, ErrorResponse

log = logging.getLogger("exception_handlers")


def _error_body(code: str, message, details=None):
    """Builds the error envelope; request_id is generated per response for tracing."""
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return jsonable_encoder(body.model_dump(exclude_none=True))


# ----------- Exception Handlers (called by FastAPI) -----------

def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    return JSONResponse(status_code=exc.status_code, content=_error_body("http_error", exc.detail))


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    body = _error_body("validation_error", "Invalid input data", details=exc.errors())
    return JSONResponse(status_code=422, content=body)


def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique/foreign key violations that escaped the service layer."""
    log.warning(f"Integrity error on {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content=_error_body("conflict", "Resource conflicts with existing data"))


def storage_error_handler(request: Request, exc: Exception):
    """Database unreachable or failing: the write did not happen."""
    log.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=_error_body("storage_error", "Storage unavailable"))


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body("server_error", "Internal Server Error"))


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, storage_error_handler)
    app.add_exception_handler(DBConnectionError, storage_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
