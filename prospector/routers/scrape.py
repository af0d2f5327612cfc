import asyncio
import logging

from fastapi import APIRouter
from pydantic import BaseModel

from prospector.config import Pacing
from prospector.dependencies import JobStoreDep, ServicesDep
from prospector.exceptions.custom import UrlValidationError
from prospector.jobs import JobStore
from prospector.mappers.summary import summarize_scrape
from prospector.mappers.url_list import validate_urls
from prospector.schemas.contacts import UrlValidation
from prospector.schemas.detection import DetectionVerdict
from prospector.schemas.responses import JobSubmittedResponse, ScrapeResponse
from prospector.services.factory import Services

logger = logging.getLogger(__name__)

router = APIRouter()


class DetectRequest(BaseModel):
    url: str


class ValidateRequest(BaseModel):
    urls: list[str]


class ScrapeRequest(BaseModel):
    urls: list[str]
    only_platform: bool = False
    delay_ms: int | None = None
    export: bool = False
    output_prefix: str = "wordpress_scrape"


async def scrape_urls(services: Services, request: ScrapeRequest) -> ScrapeResponse:
    validation = validate_urls(request.urls)
    if validation.invalid:
        logger.warning("Skipping %d invalid URLs: %s", len(validation.invalid), validation.invalid)
    if not validation.valid:
        raise UrlValidationError("No valid URLs provided")

    pacing = Pacing(delay_ms=request.delay_ms) if request.delay_ms is not None else None
    results = await services.scraper.scrape_batch(
        validation.valid, pacing=pacing, only_platform=request.only_platform,
    )

    exports: dict[str, str] = {}
    if request.export:
        paths = services.exporter.export_all(results, request.output_prefix)
        exports = {fmt: str(path) for fmt, path in paths.items()}

    return ScrapeResponse(results=results, summary=summarize_scrape(results), exports=exports)


async def _run_scrape(
    job_id: str,
    services: Services,
    store: JobStore,
    request: ScrapeRequest,
) -> None:
    store.mark_running(job_id)
    try:
        result = await scrape_urls(services, request)
        store.mark_completed(job_id, result)
    except Exception as exc:
        logger.exception("Scrape job %s failed", job_id)
        store.mark_failed(job_id, str(exc))


@router.post("/detect", response_model=DetectionVerdict)
async def detect_platform(request: DetectRequest, services: ServicesDep) -> DetectionVerdict:
    return await services.detector.detect(request.url)


@router.post("/validate", response_model=UrlValidation)
async def validate(request: ValidateRequest) -> UrlValidation:
    return validate_urls(request.urls)


@router.post("/scrape", response_model=JobSubmittedResponse, status_code=202)
async def submit_scrape(
    request: ScrapeRequest,
    services: ServicesDep,
    store: JobStoreDep,
) -> JobSubmittedResponse:
    if not request.urls:
        raise UrlValidationError("No URLs provided")

    job = store.create_job(task_type="scrape")
    asyncio.create_task(_run_scrape(job.job_id, services, store, request))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message=f"Scrape job submitted for {len(request.urls)} URLs",
    )


@router.post("/scrape/sync", response_model=ScrapeResponse)
async def scrape_sync(request: ScrapeRequest, services: ServicesDep) -> ScrapeResponse:
    return await scrape_urls(services, request)
