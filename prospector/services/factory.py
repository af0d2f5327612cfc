from dataclasses import dataclass

import httpx

from prospector.config import PipelineOptions, ScrapeOptions, SearchOptions, Settings
from prospector.services.contact_extractor import ContactExtractorService
from prospector.services.exporter import ReportExporter
from prospector.services.platform_detector import PlatformDetectorService
from prospector.services.prospecting import ProspectingPipeline
from prospector.services.search_discoverer import SearchDiscovererService
from prospector.services.site_scraper import SiteScraperService


@dataclass(frozen=True)
class Services:
    detector: PlatformDetectorService
    extractor: ContactExtractorService
    scraper: SiteScraperService
    discoverer: SearchDiscovererService
    exporter: ReportExporter

    def pipeline(self, options: PipelineOptions) -> ProspectingPipeline:
        return ProspectingPipeline(
            self.discoverer,
            self.detector,
            self.scraper,
            exporter=self.exporter,
            options=options,
        )


def build_services(
    client: httpx.AsyncClient,
    settings: Settings,
    scrape_options: ScrapeOptions | None = None,
    search_options: SearchOptions | None = None,
) -> Services:
    scrape_options = scrape_options or settings.scrape_options()
    search_options = search_options or settings.search_options()

    detector = PlatformDetectorService(client, scrape_options)
    extractor = ContactExtractorService(client, scrape_options)
    return Services(
        detector=detector,
        extractor=extractor,
        scraper=SiteScraperService(detector, extractor, scrape_options),
        discoverer=SearchDiscovererService(client, search_options),
        exporter=ReportExporter(settings.output_dir),
    )
