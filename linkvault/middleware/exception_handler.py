"""Exception handlers producing the ``{error, message, details}`` envelope."""

import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..exceptions import ErrorCode, LinkVaultException

logger = logging.getLogger(__name__)


async def linkvault_exception_handler(request: Request, exc: LinkVaultException) -> JSONResponse:
    """
    Convert a LinkVaultException into its JSON response.

    Client errors are logged at WARNING, server errors at ERROR.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"LinkVaultException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reshape FastAPI's request validation errors into the same envelope."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    return JSONResponse(
        status_code=422,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": message,
            "details": {"errors": errors},
        },
    )
