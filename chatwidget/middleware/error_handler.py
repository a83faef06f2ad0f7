"""
Global exception handlers: every failure leaves as a canonical envelope.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from chatwidget.models.schemas import FailureEnvelope


async def global_exception_handler(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        envelope = FailureEnvelope(
            code="INTERNAL_ERROR",
            error="Internal server error",
            details=str(exc) or type(exc).__name__,
        )
        return JSONResponse(status_code=500, content=envelope.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected malformed body on {request.method} {request.url.path}")
    envelope = FailureEnvelope(
        code="INVALID_REQUEST",
        error="Invalid request body",
        details=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ],
    )
    return JSONResponse(status_code=400, content=envelope.to_dict())
