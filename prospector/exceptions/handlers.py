import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import ExportError, FetchError, UrlValidationError

logger = logging.getLogger(__name__)


async def fetch_error_handler(_request: Request, exc: FetchError) -> JSONResponse:
    logger.error("Fetch error: %s (url=%s, status=%s)", exc.message, exc.url, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Fetch error: {exc.message}"},
    )


async def url_validation_error_handler(_request: Request, exc: UrlValidationError) -> JSONResponse:
    logger.warning("Invalid URL input: %s", exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message},
    )


async def export_error_handler(_request: Request, exc: ExportError) -> JSONResponse:
    logger.error("Export error: %s (path=%s)", exc.message, exc.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Export error: {exc.message}"},
    )
