"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from api.middleware import get_request_id
from core.exceptions import (
    EncodingError,
    InvalidAmountError,
    InvalidTransitionError,
    NotFoundError,
    VerifierUnavailableError,
)

logger = logging.getLogger(__name__)


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, get_request_id(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(InvalidAmountError)
    async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
        return _error(request, 400, ErrorCodes.INVALID_AMOUNT, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(request, 404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return _error(request, 409, ErrorCodes.INVALID_STATUS_TRANSITION, str(exc))

    @app.exception_handler(EncodingError)
    async def encoding_error_handler(request: Request, exc: EncodingError):
        logger.error(f"Payment request encoding failed: {exc}")
        return _error(request, 500, ErrorCodes.ENCODING_FAILED, "Could not build payment request")

    @app.exception_handler(VerifierUnavailableError)
    async def verifier_unavailable_handler(request: Request, exc: VerifierUnavailableError):
        return _error(
            request, 503, ErrorCodes.SERVICE_UNAVAILABLE,
            "Payment verification is temporarily unavailable",
        )

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        # A model built from server state failed its own checks
        logger.exception("Internal model validation failed")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
