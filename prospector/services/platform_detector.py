import logging
from collections.abc import Callable
from typing import NamedTuple

import httpx
from bs4 import BeautifulSoup

from prospector.config import Pacing, ScrapeOptions
from prospector.exceptions.custom import FetchError
from prospector.schemas.detection import Confidence, DetectionVerdict
from prospector.services.fetcher import ensure_scheme, fetch_page

logger = logging.getLogger(__name__)

INDICATORS = (
    "/wp-content/",
    "/wp-includes/",
    "/wp-admin/",
    "wp-json",
    "wordpress",
    "wp_enqueue_script",
    "wp-embed.min.js",
    "wp-rocket",
    "elementor",
    "woocommerce",
)

REST_PROBE_PATH = "/wp-json/wp/v2/posts?per_page=1"

_ASSET_TOKEN = "wp-"
_BODY_CLASS_TOKENS = ("wp-", "wordpress")


class Hit(NamedTuple):
    indicator: str
    confidence: Confidence


MarkupCheck = Callable[[str, BeautifulSoup], Hit | None]


def match_indicator_strings(html: str, _soup: BeautifulSoup) -> Hit | None:
    body = html.lower()
    for indicator in INDICATORS:
        if indicator in body:
            return Hit(indicator, Confidence.high)
    return None


def match_generator_meta(_html: str, soup: BeautifulSoup) -> Hit | None:
    meta = soup.find("meta", attrs={"name": "generator"})
    content = meta.get("content") if meta else None
    if content and "wordpress" in content.lower():
        return Hit("meta generator tag", Confidence.high)
    return None


def match_asset_references(_html: str, soup: BeautifulSoup) -> Hit | None:
    for tag in soup.find_all(["link", "script"]):
        ref = tag.get("href") if tag.name == "link" else tag.get("src")
        if ref and _ASSET_TOKEN in ref:
            return Hit("WordPress assets in link tags", Confidence.medium)
    return None


def match_body_classes(_html: str, soup: BeautifulSoup) -> Hit | None:
    body = soup.find("body")
    if body is None:
        return None
    classes = " ".join(body.get("class") or [])
    if any(token in classes for token in _BODY_CLASS_TOKENS):
        return Hit("WordPress CSS classes", Confidence.medium)
    return None


# Evaluated in order; the REST probe runs between the two groups.
PRE_PROBE_CHECKS: tuple[MarkupCheck, ...] = (match_indicator_strings, match_generator_meta)
POST_PROBE_CHECKS: tuple[MarkupCheck, ...] = (match_asset_references, match_body_classes)


def _run_checks(checks: tuple[MarkupCheck, ...], html: str, soup: BeautifulSoup) -> Hit | None:
    for check in checks:
        hit = check(html, soup)
        if hit is not None:
            return hit
    return None


class PlatformDetectorService:
    def __init__(self, client: httpx.AsyncClient, options: ScrapeOptions | None = None):
        self._client = client
        self._options = options or ScrapeOptions()

    async def detect(self, url: str) -> DetectionVerdict:
        """Decide whether a site runs WordPress. Raises FetchError if the page can't be fetched."""
        target = ensure_scheme(url)
        html = await fetch_page(
            self._client,
            target,
            timeout=self._options.timeout,
            user_agent=self._options.user_agent,
        )
        soup = BeautifulSoup(html, "html.parser")

        hit = _run_checks(PRE_PROBE_CHECKS, html, soup)
        if hit is None and await self._probe_rest_api(target):
            hit = Hit("WordPress REST API", Confidence.high)
        if hit is None:
            hit = _run_checks(POST_PROBE_CHECKS, html, soup)

        if hit is None:
            return DetectionVerdict(url=url, is_platform=False, confidence=Confidence.high)
        return DetectionVerdict(
            url=url,
            is_platform=True,
            indicator=hit.indicator,
            confidence=hit.confidence,
        )

    async def detect_batch(
        self, urls: list[str], pacing: Pacing | None = None,
    ) -> list[DetectionVerdict]:
        pacing = pacing or self._options.pacing
        verdicts: list[DetectionVerdict] = []
        for i, url in enumerate(urls, start=1):
            logger.info("[%d/%d] Checking %s", i, len(urls), url)
            try:
                verdicts.append(await self.detect(url))
            except FetchError as exc:
                logger.warning("Detection failed for %s: %s", url, exc.message)
                verdicts.append(DetectionVerdict(
                    url=url,
                    is_platform=False,
                    confidence=Confidence.unknown,
                    error=exc.message,
                ))
            await pacing.wait()
        return verdicts

    async def _probe_rest_api(self, base_url: str) -> bool:
        probe_url = base_url.rstrip("/") + REST_PROBE_PATH
        try:
            resp = await self._client.get(
                probe_url,
                follow_redirects=True,
                timeout=self._options.api_probe_timeout,
                headers={"User-Agent": self._options.user_agent},
            )
        except httpx.HTTPError:
            logger.debug("REST probe failed for %s", probe_url)
            return False
        return resp.status_code == 200
