"""
Centralized error handlers for FastAPI.

Maps signal domain errors to HTTP responses.
No stack traces or internal details are exposed to clients, and
receipts are never echoed back or logged.
All error responses carry ``error``, ``code`` and optional ``detail``.
"""

import json
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hedge_signal.domain.signals.errors import (
    InsufficientPaymentError,
    InvalidReceiptError,
    PaymentRequiredError,
    SignalDomainError,
    ValidationError,
    WrongDestinationError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_402 = 402
HTTP_500 = 500

PAYMENT_REQUIRED_HEADER = "X-402-Required"


def _error_response(
    status_code: int, error: str, code: str, detail: str | None = None
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error, "code": code}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def _first_field_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}"


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(PaymentRequiredError)
    async def handle_payment_required(
        _request: Request, exc: PaymentRequiredError
    ) -> JSONResponse:
        """Return 402 with the payment descriptor in body and header."""
        descriptor = exc.requirement.to_descriptor()
        return JSONResponse(
            status_code=HTTP_402,
            content={"error": "Payment Required", "code": exc.code, **descriptor},
            headers={PAYMENT_REQUIRED_HEADER: json.dumps(descriptor)},
        )

    @app.exception_handler(ValidationError)
    async def handle_validation(
        _request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle malformed or out-of-range request fields."""
        logger.warning("Validation failed on %s: %s", exc.field, exc.reason)
        return _error_response(HTTP_400, "Invalid request", exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report schema violations with the same shape as domain validation."""
        detail = _first_field_error(exc)
        logger.warning("Request schema violation: %s", detail)
        return _error_response(
            HTTP_400, "Invalid request", ValidationError.code, detail
        )

    @app.exception_handler(InvalidReceiptError)
    async def handle_invalid_receipt(
        _request: Request, exc: InvalidReceiptError
    ) -> JSONResponse:
        """Handle malformed, unconfirmed or reused receipts."""
        logger.warning("Receipt rejected (%s): %s", exc.code, exc.reason)
        return _error_response(HTTP_400, "Invalid payment receipt", exc.code, exc.reason)

    @app.exception_handler(InsufficientPaymentError)
    async def handle_insufficient_payment(
        _request: Request, exc: InsufficientPaymentError
    ) -> JSONResponse:
        """Handle underpaid receipts."""
        logger.warning("Insufficient payment: %d < %d", exc.paid, exc.required)
        return _error_response(
            HTTP_400,
            "Insufficient payment",
            exc.code,
            f"required {exc.required}, received {exc.paid}",
        )

    @app.exception_handler(WrongDestinationError)
    async def handle_wrong_destination(
        _request: Request, exc: WrongDestinationError
    ) -> JSONResponse:
        """Handle payments sent to another address."""
        logger.warning("Payment sent to the wrong address")
        return _error_response(
            HTTP_400,
            "Wrong payment destination",
            exc.code,
            f"payment must be sent to {exc.expected}",
        )

    @app.exception_handler(SignalDomainError)
    async def handle_signal_domain(
        _request: Request, exc: SignalDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled signal domain errors."""
        logger.error("Unhandled signal domain error (%s): %s", exc.code, exc.message)
        return _error_response(HTTP_500, "Internal server error", "INTERNAL_ERROR")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error", "INTERNAL_ERROR")
