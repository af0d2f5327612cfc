from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from prospector.schemas.contacts import ProspectRecord
from prospector.schemas.detection import PlatformSite
from prospector.schemas.search import SearchResult


class ScrapeSummary(BaseModel):
    total_sites: int = 0
    platform_sites: int = 0
    sites_with_emails: int = 0
    total_emails: int = 0
    unique_emails: int = 0
    detection_methods: dict[str, int] = {}
    errors: int = 0


class ScrapeResponse(BaseModel):
    kind: Literal["scrape"] = "scrape"
    results: list[ProspectRecord]
    summary: ScrapeSummary
    exports: dict[str, str] = {}


class PipelineSummary(BaseModel):
    total_search_results: int = 0
    search_queries: int = 0
    sites_validated: int = 0
    confirmed_platform_sites: int = 0
    platform_detection_rate: float = 0.0  # percent
    sites_with_emails: int = 0
    total_emails: int = 0
    unique_emails: int = 0
    avg_emails_per_site: float = 0.0


class PipelineResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["pipeline"] = "pipeline"
    search_results: list[SearchResult] = []
    platform_sites: list[PlatformSite] = []
    contact_data: list[ProspectRecord] = []
    summary: PipelineSummary = PipelineSummary()


JobResult = Annotated[ScrapeResponse | PipelineResult, Field(discriminator="kind")]


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    task_type: str
    status: str
    created_at: datetime
    finished_at: datetime | None = None
    result: JobResult | None = None
    error: str | None = None
