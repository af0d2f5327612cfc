import logging

from prospector.config import PipelineOptions, SearchOptions
from prospector.mappers.summary import compute_summary
from prospector.schemas.contacts import ProspectRecord
from prospector.schemas.detection import PlatformSite, PlatformStatus
from prospector.schemas.responses import PipelineResult
from prospector.schemas.search import SearchResult
from prospector.services.exporter import ReportExporter
from prospector.services.platform_detector import PlatformDetectorService
from prospector.services.search_discoverer import SearchDiscovererService, extract_domains
from prospector.services.site_scraper import SiteScraperService

logger = logging.getLogger(__name__)


class ProspectingPipeline:
    """Discover -> Validate (optional) -> Extract (optional) -> Summarize -> Export."""

    def __init__(
        self,
        discoverer: SearchDiscovererService,
        detector: PlatformDetectorService,
        scraper: SiteScraperService,
        exporter: ReportExporter | None = None,
        options: PipelineOptions | None = None,
    ):
        self._discoverer = discoverer
        self._detector = detector
        self._scraper = scraper
        self._exporter = exporter
        self._options = options or PipelineOptions()

    async def run(
        self,
        industry: str | None = None,
        custom_queries: list[str] | None = None,
        keywords: list[str] | None = None,
        search_options: SearchOptions | None = None,
    ) -> PipelineResult:
        search_options = (search_options or self._discoverer.options).model_copy(
            update={"max_results": self._options.max_search_results}
        )

        # Step 1: discover
        if keywords:
            logger.info("Step 1: searching for WordPress sites with keywords: %s", ", ".join(keywords))
            query_count = len([k for k in keywords if k.strip()])
            search_results = await self._discoverer.search_by_keywords(keywords, search_options)
        else:
            logger.info("Step 1: searching for WordPress websites")
            query_count = len(self._discoverer.build_queries(industry, custom_queries))
            search_results = await self._discoverer.find_platform_sites(
                industry=industry,
                custom_queries=custom_queries,
                options=search_options,
            )
        logger.info("Found %d potential WordPress sites", len(search_results))

        if not search_results:
            logger.warning("No search results found. Try different search parameters.")
            return self._finish(search_results, [], [], query_count)

        # Several hits on one host collapse to a single site
        urls = list(dict.fromkeys(extract_domains(search_results)))

        # Step 2: validate
        platform_sites = await self._validate(urls)
        if self._options.validate_platform:
            forward = [s.url for s in platform_sites if s.status == PlatformStatus.confirmed]
            logger.info("Confirmed %d WordPress sites out of %d checked", len(forward), len(urls))
        else:
            forward = urls

        # Step 3: extract
        contact_data: list[ProspectRecord] = []
        if self._options.extract_contacts and forward:
            logger.info("Step 3: extracting contact information from %d sites", len(forward))
            contact_data = await self._scraper.scrape_batch(
                forward,
                pacing=self._options.extraction_pacing,
                only_platform=False,
            )

        return self._finish(search_results, platform_sites, contact_data, query_count)

    async def run_industry(
        self, industry: str, search_options: SearchOptions | None = None,
    ) -> PipelineResult:
        logger.info("Searching for WordPress sites in the %s industry", industry)
        if search_options is None:
            search_options = self._discoverer.options.model_copy(update={"max_pages": 3})
        return await self.run(industry=industry, search_options=search_options)

    async def find_agency_prospects(self, search_options: SearchOptions | None = None) -> PipelineResult:
        return await self.run_industry("agencies", search_options)

    async def find_ecommerce_prospects(self, search_options: SearchOptions | None = None) -> PipelineResult:
        return await self.run_industry("ecommerce", search_options)

    def export_results(self, result: PipelineResult, prefix: str = "wordpress_prospects") -> dict:
        if self._exporter is None:
            raise RuntimeError("ProspectingPipeline has no exporter configured")

        exports: dict = {}
        if result.search_results:
            exports["search_results"] = self._exporter.export_search_results(
                result.search_results, f"{prefix}_search_results.json"
            )
        if result.contact_data:
            exports["contacts"] = self._exporter.export_all(result.contact_data, prefix)
        exports["summary"] = self._exporter.export_summary_report(result, prefix)
        return exports

    async def _validate(self, urls: list[str]) -> list[PlatformSite]:
        if not self._options.validate_platform:
            return [PlatformSite(url=url, status=PlatformStatus.not_validated) for url in urls]

        logger.info("Step 2: validating WordPress installations")
        verdicts = await self._detector.detect_batch(urls, pacing=self._options.validation_pacing)
        return [PlatformSite.from_verdict(v) for v in verdicts]

    def _finish(
        self,
        search_results: list[SearchResult],
        platform_sites: list[PlatformSite],
        contact_data: list[ProspectRecord],
        query_count: int,
    ) -> PipelineResult:
        summary = compute_summary(search_results, platform_sites, contact_data, query_count)
        logger.info(
            "Prospecting summary: %d results, %d confirmed (%.1f%%), %d sites with emails, "
            "%d emails (%d unique)",
            summary.total_search_results,
            summary.confirmed_platform_sites,
            summary.platform_detection_rate,
            summary.sites_with_emails,
            summary.total_emails,
            summary.unique_emails,
        )
        return PipelineResult(
            search_results=search_results,
            platform_sites=platform_sites,
            contact_data=contact_data,
            summary=summary,
        )
