"""Translate service-layer failures into the response envelope."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from opportunity.exceptions import PipelineError
from opportunity.schemas.envelope import failure

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Something went wrong on our side. Please try again."
HTTP_ERROR_CODES = {401: "not_authenticated", 403: "forbidden", 404: "not_found", 405: "method_not_allowed"}


def _envelope_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=failure(code, message).model_dump(mode="json"))


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    if exc.user_facing:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        return _envelope_response(exc.status_code, exc.code, exc.message)

    logger.error(
        f"{request.method} {request.url.path} failed with {exc.code}: {exc.message}",
        extra={"details": exc.details},
    )
    return _envelope_response(exc.status_code, exc.code, GENERIC_FAILURE_MESSAGE)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _envelope_response(422, "validation_error", message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the same envelope."""
    code = HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    response = _envelope_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Unhandled database error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return _envelope_response(500, "internal_error", GENERIC_FAILURE_MESSAGE)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}", exc_info=exc)
    return _envelope_response(500, "internal_error", GENERIC_FAILURE_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
