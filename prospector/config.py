import asyncio

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


class Pacing(BaseModel):
    """Fixed pause taken after every request of a batch."""

    model_config = ConfigDict(frozen=True)

    delay_ms: int = 1000

    async def wait(self) -> None:
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000)


class ScrapeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    pacing: Pacing = Pacing()
    timeout: float = 10.0
    api_probe_timeout: float = 5.0
    only_platform: bool = False
    user_agent: str = DEFAULT_USER_AGENT


class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    pacing: Pacing = Pacing(delay_ms=2000)
    max_pages: int = 5
    results_per_page: int = 10
    language: str = "en"
    timeout: float = 15.0
    max_results: int | None = None
    user_agent: str = DEFAULT_USER_AGENT


class PipelineOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_search_results: int = 100
    validate_platform: bool = True
    extract_contacts: bool = True
    validation_pacing: Pacing = Pacing(delay_ms=1500)
    extraction_pacing: Pacing = Pacing(delay_ms=2000)


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    log_level: str = "INFO"
    output_dir: str = "output"
    user_agent: str = DEFAULT_USER_AGENT

    request_delay_ms: int = 1000
    request_timeout: float = 10.0
    api_probe_timeout: float = 5.0

    search_delay_ms: int = 2000
    search_timeout: float = 15.0
    search_max_pages: int = 5
    search_results_per_page: int = 10
    search_language: str = "en"

    max_search_results: int = 100
    validation_delay_ms: int = 1500
    extraction_delay_ms: int = 2000

    def scrape_options(self, **overrides) -> ScrapeOptions:
        options = ScrapeOptions(
            pacing=Pacing(delay_ms=self.request_delay_ms),
            timeout=self.request_timeout,
            api_probe_timeout=self.api_probe_timeout,
            user_agent=self.user_agent,
        )
        return options.model_copy(update=overrides) if overrides else options

    def search_options(self, **overrides) -> SearchOptions:
        options = SearchOptions(
            pacing=Pacing(delay_ms=self.search_delay_ms),
            max_pages=self.search_max_pages,
            results_per_page=self.search_results_per_page,
            language=self.search_language,
            timeout=self.search_timeout,
            user_agent=self.user_agent,
        )
        return options.model_copy(update=overrides) if overrides else options

    def pipeline_options(self, **overrides) -> PipelineOptions:
        options = PipelineOptions(
            max_search_results=self.max_search_results,
            validation_pacing=Pacing(delay_ms=self.validation_delay_ms),
            extraction_pacing=Pacing(delay_ms=self.extraction_delay_ms),
        )
        return options.model_copy(update=overrides) if overrides else options
