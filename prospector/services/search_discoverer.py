import logging
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
from bs4 import BeautifulSoup

from prospector.config import SearchOptions
from prospector.exceptions.custom import FetchError
from prospector.schemas.search import SearchResult
from prospector.services.fetcher import BROWSER_HEADERS, fetch_page

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search"

TRACKING_PARAMS = frozenset({
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "gclid",
})

EXCLUDED_DOMAINS = (
    "google.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "linkedin.com",
    "instagram.com",
    "pinterest.com",
    "reddit.com",
    "wikipedia.org",
    "amazon.com",
    "ebay.com",
    "craigslist.org",
)

# Result containers; Google's markup changes often, so several are tried
RESULT_SELECTORS = ("div.g", "div.tF2Cxc", "div.hlcw0c", "div.MjjYud")
_DESCRIPTION_SELECTORS = ("div.VwiC3b", "span.st", "div[data-sncf]")

PLATFORM_QUERIES = (
    "site:*/wp-content/",
    "site:*/wp-includes/",
    "site:*/wp-admin/",
    '"powered by wordpress"',
    '"wordpress theme"',
    '"wp-content/themes"',
    '"wp-content/plugins"',
    "inurl:wp-content",
    "inurl:wp-includes",
    'filetype:xml "wordpress"',
    '"wp-json/wp/v2"',
)

INDUSTRY_QUERIES: dict[str, tuple[str, ...]] = {
    "agencies": (
        '"web design agency" "powered by wordpress"',
        '"digital agency" inurl:wp-content',
        '"marketing agency" site:*/wp-admin/',
        '"creative agency" "wordpress theme"',
    ),
    "ecommerce": (
        '"woocommerce" "powered by wordpress"',
        '"online store" inurl:wp-content',
        '"shop" "wp-content/plugins/woocommerce"',
        '"ecommerce" "wordpress"',
    ),
    "blogs": (
        '"blog" "powered by wordpress"',
        '"personal blog" inurl:wp-content',
        '"news" "wordpress theme"',
        '"magazine" site:*/wp-content/',
    ),
    "business": (
        '"company" "powered by wordpress"',
        '"business" inurl:wp-content',
        '"corporate" "wordpress theme"',
        '"services" site:*/wp-admin/',
    ),
    "freelancers": (
        '"freelancer" "powered by wordpress"',
        '"portfolio" inurl:wp-content',
        '"designer" "wordpress theme"',
        '"developer" site:*/wp-content/',
    ),
}

KEYWORD_SUFFIX = '"powered by wordpress"'


def build_search_url(query: str, start: int = 0, options: SearchOptions | None = None) -> str:
    options = options or SearchOptions()
    params = {
        "q": query,
        "start": start,
        "num": options.results_per_page,
        "hl": options.language,
        "safe": "active",
        "filter": "0",
    }
    return f"{SEARCH_URL}?{urlencode(params)}"


def keyword_query(keyword: str) -> str:
    return f'"{keyword}" {KEYWORD_SUFFIX}'


def strip_tracking_params(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS]
    return urlunsplit(parts._replace(query=urlencode(kept)))


def clean_url(url: str) -> str:
    """Reduce a URL to scheme://host/path.

    Tracking params are stripped, then the rest of the query and the fragment
    are dropped too. Input that can't be parsed is returned unchanged.
    """
    try:
        parts = urlsplit(strip_tracking_params(url))
        host = parts.hostname
    except ValueError:
        return url
    if not parts.scheme or not host:
        return url

    path = parts.path.rstrip("/") or "/"
    return f"{parts.scheme}://{host}{path}"


def is_valid_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    if "." not in host or "localhost" in host:
        return False
    return not any(domain in host or host.endswith(domain) for domain in EXCLUDED_DOMAINS)


def dedupe_results(results: list[SearchResult]) -> list[SearchResult]:
    seen: set[str] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = result.url.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def extract_domains(results: list[SearchResult]) -> list[str]:
    domains: list[str] = []
    for result in results:
        try:
            host = urlsplit(result.url).hostname
        except ValueError:
            host = None
        domains.append(host or result.url)
    return domains


def _resolve_href(href: str | None) -> str | None:
    if not href:
        return None
    if href.startswith("/url?"):
        targets = parse_qs(urlsplit(href).query).get("q")
        return targets[0] if targets else None
    if href.startswith("http"):
        return href
    return None


def _block_text(block, selectors: tuple[str, ...]) -> str:
    for selector in selectors:
        node = block.select_one(selector)
        if node is not None:
            text = node.get_text(" ", strip=True)
            if text:
                return text
    return ""


def _parse_block(block, query: str) -> SearchResult | None:
    link = block.find("a", href=True)
    url = _resolve_href(link["href"]) if link else None
    if not url:
        return None

    cleaned = clean_url(url)
    if not is_valid_url(cleaned):
        return None

    return SearchResult(
        url=cleaned,
        title=_block_text(block, ("h3", '[role="heading"]')) or "No title",
        description=_block_text(block, _DESCRIPTION_SELECTORS) or "No description",
        source_query=query,
    )


def parse_search_results(html: str, query: str = "") -> list[SearchResult]:
    """Parse result blocks from a search page. Unknown or broken markup yields []."""
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception:
        logger.exception("Could not parse search page for %s", query)
        return []

    results: list[SearchResult] = []
    for selector in RESULT_SELECTORS:
        for block in soup.select(selector):
            try:
                result = _parse_block(block, query)
            except Exception:
                logger.debug("Skipping unparsable result block for %s", query, exc_info=True)
                continue
            if result is not None:
                results.append(result)
    return results


class SearchDiscovererService:
    def __init__(self, client: httpx.AsyncClient, options: SearchOptions | None = None):
        self._client = client
        self._options = options or SearchOptions()

    @property
    def options(self) -> SearchOptions:
        return self._options

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Scrape up to max_pages result pages. Stops at the first failed page, never raises."""
        options = options or self._options
        results: list[SearchResult] = []

        for page in range(options.max_pages):
            url = build_search_url(query, page * options.results_per_page, options)
            try:
                html = await fetch_page(
                    self._client,
                    url,
                    timeout=options.timeout,
                    user_agent=options.user_agent,
                    headers=BROWSER_HEADERS,
                )
            except FetchError as exc:
                logger.warning("Search page %d failed for %r: %s", page + 1, query, exc.message)
                break

            page_results = parse_search_results(html, query)
            logger.info("Found %d results on page %d for %r", len(page_results), page + 1, query)
            results.extend(page_results)

            if page < options.max_pages - 1:
                await options.pacing.wait()

        return dedupe_results(results)

    def build_queries(
        self,
        industry: str | None = None,
        custom_queries: list[str] | None = None,
    ) -> list[str]:
        queries = list(PLATFORM_QUERIES)
        if industry:
            if industry in INDUSTRY_QUERIES:
                queries.extend(INDUSTRY_QUERIES[industry])
                logger.info("Adding %s industry-specific queries", industry)
            else:
                logger.warning("Unknown industry %r, using generic queries only", industry)
        if custom_queries:
            queries.extend(custom_queries)
            logger.info("Adding %d custom queries", len(custom_queries))
        return queries

    async def find_platform_sites(
        self,
        industry: str | None = None,
        custom_queries: list[str] | None = None,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        options = options or self._options
        queries = self.build_queries(industry, custom_queries)
        return await self._run_queries(queries, options)

    async def search_by_keywords(
        self, keywords: list[str], options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        options = options or self._options
        queries = [keyword_query(k) for k in keywords if k.strip()]
        return await self._run_queries(queries, options)

    async def _run_queries(self, queries: list[str], options: SearchOptions) -> list[SearchResult]:
        max_results = options.max_results
        all_results: list[SearchResult] = []

        for i, query in enumerate(queries):
            logger.info("[%d/%d] Processing query: %s", i + 1, len(queries), query)
            try:
                found = await self.search(query, options)
            except Exception:
                logger.exception("Query failed: %s", query)
                continue
            all_results.extend(found)

            if max_results and len(all_results) >= max_results:
                logger.info("Reached maximum results limit (%d)", max_results)
                break

            if i < len(queries) - 1:
                await options.pacing.wait()

        unique = dedupe_results(all_results)
        final = unique[:max_results] if max_results else unique
        logger.info(
            "Search summary: %d queries, %d results, %d unique, %d kept",
            len(queries), len(all_results), len(unique), len(final),
        )
        return final
