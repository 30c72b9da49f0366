"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApresSkiError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class UnknownLocationError(ApresSkiError):
    def __init__(self, slug: str, supported: list[str]):
        super().__init__(
            f"Unknown location: {slug}. Supported: {sorted(supported)}",
            status_code=404,
        )


class UnknownCategoryError(ApresSkiError):
    def __init__(self, category: str, supported: set[str]):
        super().__init__(
            f"Unknown category: {category}. Supported: {sorted(supported)}",
            status_code=404,
        )


class UpstreamFailure(ApresSkiError):
    """Overpass could not be reached or kept failing after the retry.

    ``details`` holds the upstream response body or the transport error
    message of the last attempt.
    """

    def __init__(self, details: str):
        super().__init__(f"Overpass failed: {details}", status_code=500)
        self.details = details


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(UpstreamFailure)
    async def handle_upstream_failure(_request: Request, exc: UpstreamFailure):
        return JSONResponse(
            {"error": "Overpass failed", "details": exc.details},
            status_code=exc.status_code,
        )

    @app.exception_handler(ApresSkiError)
    async def handle_apres_ski_error(_request: Request, exc: ApresSkiError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
