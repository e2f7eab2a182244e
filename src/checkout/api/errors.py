"""HTTP mapping for checkout errors, layered over Protean's own handlers.

Starlette resolves handlers along the exception's MRO, so these subclasses
win over the generic ``ValidationError``/``InvalidOperationError`` mappings.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from checkout.errors import (
    CheckoutValidationError,
    IllegalTransitionError,
    MixedCurrencyError,
    PaymentGatewayError,
    PaymentVerificationFailed,
    RequestNotEligible,
)

STATUS_BY_ERROR = {
    CheckoutValidationError: 400,
    PaymentVerificationFailed: 400,
    IllegalTransitionError: 409,
    RequestNotEligible: 422,
    MixedCurrencyError: 422,
    PaymentGatewayError: 502,
}


def _handler_for(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": exc.messages})

    return handler


def register_checkout_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for error, status_code in STATUS_BY_ERROR.items():
        app.add_exception_handler(error, _handler_for(status_code))
