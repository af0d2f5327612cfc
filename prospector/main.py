import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from prospector.config import Settings
from prospector.exceptions.custom import ExportError, FetchError, UrlValidationError
from prospector.exceptions.handlers import (
    export_error_handler,
    fetch_error_handler,
    url_validation_error_handler,
)
from prospector.jobs import JobStore
from prospector.routers.find import router as find_router
from prospector.routers.scrape import router as scrape_router
from prospector.services.factory import build_services


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    configure_logging(settings.log_level)

    async with httpx.AsyncClient(timeout=30.0) as client:
        app.state.settings = settings
        app.state.services = build_services(client, settings)
        app.state.job_store = JobStore()

        yield


app = FastAPI(title="WordPress Prospector", lifespan=lifespan)

app.add_exception_handler(FetchError, fetch_error_handler)
app.add_exception_handler(UrlValidationError, url_validation_error_handler)
app.add_exception_handler(ExportError, export_error_handler)

app.include_router(scrape_router)
app.include_router(find_router)
