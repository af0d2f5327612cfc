import asyncio
import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from prospector.config import Settings
from prospector.dependencies import JobStoreDep, ServicesDep, SettingsDep
from prospector.jobs import JobStore
from prospector.schemas.responses import JobStatusResponse, JobSubmittedResponse, PipelineResult
from prospector.services.factory import Services

logger = logging.getLogger(__name__)

router = APIRouter()


class FindRequest(BaseModel):
    industry: str | None = None
    keywords: list[str] = []
    queries: list[str] = []
    max_results: int = 50
    pages: int = 3
    validate_platform: bool = True
    extract_contacts: bool = True
    export: bool = False
    output_prefix: str = "google_search"


async def run_find(services: Services, settings: Settings, request: FindRequest) -> PipelineResult:
    pipeline = services.pipeline(settings.pipeline_options(
        max_search_results=request.max_results,
        validate_platform=request.validate_platform,
        extract_contacts=request.extract_contacts,
    ))
    search_options = services.discoverer.options.model_copy(update={"max_pages": request.pages})

    result = await pipeline.run(
        industry=request.industry,
        custom_queries=request.queries or None,
        keywords=request.keywords or None,
        search_options=search_options,
    )
    if request.export:
        pipeline.export_results(result, request.output_prefix)
    return result


async def _run_find_job(
    job_id: str,
    services: Services,
    settings: Settings,
    store: JobStore,
    request: FindRequest,
) -> None:
    store.mark_running(job_id)
    try:
        result = await run_find(services, settings, request)
        store.mark_completed(job_id, result)
    except Exception as exc:
        logger.exception("Find job %s failed", job_id)
        store.mark_failed(job_id, str(exc))


@router.post("/find", response_model=JobSubmittedResponse, status_code=202)
async def submit_find(
    services: ServicesDep,
    settings: SettingsDep,
    store: JobStoreDep,
    request: FindRequest | None = None,
) -> JobSubmittedResponse:
    request = request or FindRequest()
    job = store.create_job(task_type="find")
    asyncio.create_task(_run_find_job(job.job_id, services, settings, store, request))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Prospecting job submitted",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(**job.model_dump(exclude={"result"}), result=job.result)
