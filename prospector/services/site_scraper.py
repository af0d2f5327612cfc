import logging

from prospector.config import Pacing, ScrapeOptions
from prospector.exceptions.custom import FetchError, UrlValidationError
from prospector.schemas.contacts import ProspectRecord
from prospector.services.contact_extractor import ContactExtractorService
from prospector.services.platform_detector import PlatformDetectorService

logger = logging.getLogger(__name__)


def _describe_error(exc: Exception) -> str:
    text = str(exc).strip()
    return text or type(exc).__name__


class SiteScraperService:
    """Detects the platform and harvests contacts for one site at a time."""

    def __init__(
        self,
        detector: PlatformDetectorService,
        extractor: ContactExtractorService,
        options: ScrapeOptions | None = None,
    ):
        self._detector = detector
        self._extractor = extractor
        self._options = options or ScrapeOptions()

    async def scrape_website(self, url: str, only_platform: bool | None = None) -> ProspectRecord | None:
        """Returns None for non-WordPress sites when only_platform is set. Never raises."""
        if only_platform is None:
            only_platform = self._options.only_platform
        try:
            verdict = await self._detector.detect(url)
            if not verdict.is_platform and only_platform:
                logger.info("%s is not a WordPress site - skipping", url)
                return None

            contacts = await self._extractor.extract(url)
        except (FetchError, UrlValidationError) as exc:
            logger.warning("Failed to process %s: %s", url, exc.message)
            return ProspectRecord(url=url, error=exc.message)
        except Exception as exc:
            logger.exception("Unexpected error processing %s", url)
            return ProspectRecord(url=url, error=_describe_error(exc))

        logger.info(
            "%s - WordPress: %s, emails found: %d",
            url, "yes" if verdict.is_platform else "no", len(contacts.emails),
        )
        return ProspectRecord(
            **contacts.model_dump(),
            is_platform=verdict.is_platform,
            indicator=verdict.indicator,
            confidence=verdict.confidence,
        )

    async def scrape_batch(
        self,
        urls: list[str],
        pacing: Pacing | None = None,
        only_platform: bool | None = None,
    ) -> list[ProspectRecord]:
        pacing = pacing or self._options.pacing
        results: list[ProspectRecord] = []
        logger.info("Starting WordPress contact scraping for %d URLs", len(urls))

        for i, url in enumerate(urls):
            logger.info("[%d/%d] Processing: %s", i + 1, len(urls), url)
            record = await self.scrape_website(url, only_platform=only_platform)
            if record is not None:
                results.append(record)
            if i < len(urls) - 1:
                await pacing.wait()

        return results
