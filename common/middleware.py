"""Request metrics and the JSON error envelope shared by every service."""

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def error_response(status_code: int, error: str, headers=None, **extra) -> JSONResponse:
    """Builds the `{success: false, error}` body used for every failure."""
    content = {"success": False, "error": error}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def describe_validation_error(exc: RequestValidationError) -> str:
    """Turns the first pydantic error into a short, field-specific message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body"

    field_path = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    field = ".".join(field_path)
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


def install_error_handlers(app: FastAPI) -> None:
    """Renders HTTP and validation errors as `{success: false, error}`."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = describe_validation_error(exc)
        logger.warning(f"Validation failed on {request.url.path}: {message}")
        return error_response(status.HTTP_400_BAD_REQUEST, message)


def install_metrics(app: FastAPI, service_name: str) -> None:
    """Registers Prometheus counters for the service and the middleware that feeds them."""
    request_count = Counter(
        f"{service_name}_requests_total",
        f"Total requests processed by {service_name}",
        ["method", "endpoint", "status_code"]
    )
    request_latency = Histogram(
        f"{service_name}_request_latency_seconds",
        f"Request latency in seconds for {service_name}",
        ["endpoint"]
    )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start_time = time.time()
        response = None
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as exc:
            logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
            response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)
        finally:
            latency = time.time() - start_time
            endpoint = request.url.path
            final_status_code = getattr(response, "status_code", status_code)

            request_latency.labels(endpoint=endpoint).observe(latency)
            request_count.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=final_status_code
            ).inc()

        return response
