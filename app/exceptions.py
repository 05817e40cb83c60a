import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class InventoryAPIError(Exception):
    """Base class for errors surfaced to API callers as {"error": message}"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryAPIError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(InventoryAPIError):
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStockError(InventoryAPIError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, ingredient_id, available: float, requested: float, unit: str = ""):
        unit_suffix = f" {unit}" if unit else ""
        super().__init__(
            f"Cannot remove {requested:g}{unit_suffix} - "
            f"only {available:g}{unit_suffix} available"
        )
        self.ingredient_id = ingredient_id
        self.available = available
        self.requested = requested


class DataAccessError(InventoryAPIError):
    """A call to the database failed; the message of the driver error is kept"""


# ----------- Exception Handlers -----------

def inventory_error_handler(request: Request, exc: InventoryAPIError):
    body = {"error": exc.message}
    if isinstance(exc, InsufficientStockError):
        body.update({
            "ingredient_id": str(exc.ingredient_id),
            "available": exc.available,
            "requested": exc.requested,
        })
    return JSONResponse(status_code=exc.status_code, content=body)


def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Pydantic validation failures are reported as 400 with the first problem"""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on path {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc) or "Internal Server Error"},
    )


def setup_exception_handlers(app: FastAPI):
    app.add_exception_handler(InventoryAPIError, inventory_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app
