"""Status code mapping and global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import ErrorCodes, error_response, success_response
from core.exceptions import InvoicingError, ValidationError

logger = logging.getLogger(__name__)


STATUS_BY_CODE = {
    ErrorCodes.VALIDATION_ERROR: 422,
    ErrorCodes.INVALID_REQUEST: 400,
    ErrorCodes.NOT_CONFIGURED: 400,
    ErrorCodes.NOT_AUTHENTICATED: 401,
    ErrorCodes.NOT_FOUND: 404,
    ErrorCodes.STORE_ERROR: 500,
    ErrorCodes.AGGREGATION_ERROR: 500,
    ErrorCodes.PAYMENT_RECORDING_FAILED: 500,
    ErrorCodes.INTERNAL_ERROR: 500,
    ErrorCodes.EXTERNAL_SERVICE_ERROR: 502,
}


def status_for(code: str) -> int:
    return STATUS_BY_CODE.get(code, 500)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def result_response(request: Request, result: dict) -> JSONResponse:
    """
    Translate an action result dict into an enveloped JSON response.

    Success payloads lose their `success` key; failures keep field errors
    and related ids under `error.details`.
    """
    request_id = _request_id(request)
    payload = {k: v for k, v in result.items() if k != "success"}

    if result.get("success"):
        body = success_response(payload, request_id=request_id)
        return JSONResponse(status_code=200, content=body.model_dump(mode="json"))

    code = payload.pop("code", ErrorCodes.INTERNAL_ERROR)
    errors = payload.pop("errors", None)
    message = payload.pop("error", None) or ("Validation failed" if errors else "Request failed")
    details = {"errors": errors} if errors else {}
    details.update(payload)

    body = error_response(code, message, details=details or None, request_id=request_id)
    return JSONResponse(status_code=status_for(code), content=body.model_dump(mode="json"))


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(InvoicingError)
    async def domain_error_handler(request: Request, exc: InvoicingError):
        details = {"errors": exc.errors} if isinstance(exc, ValidationError) else None
        return JSONResponse(
            status_code=status_for(exc.code),
            content=error_response(
                exc.code, str(exc), details=details, request_id=_request_id(request)
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content=error_response(
                ErrorCodes.INVALID_REQUEST, str(exc), request_id=_request_id(request)
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                str(exc.errors()),
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )
