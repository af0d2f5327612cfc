import logging

import httpx

from prospector.exceptions.custom import FetchError

logger = logging.getLogger(__name__)

MAX_BODY = 2 * 1024 * 1024  # 2 MB

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}


def ensure_scheme(url: str) -> str:
    url = url.strip()
    if not url.startswith("http://") and not url.startswith("https://"):
        url = "https://" + url
    return url


async def fetch_page(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float,
    user_agent: str,
    headers: dict[str, str] | None = None,
    require_html: bool = False,
) -> str:
    """Fetch a page and return its body, raising FetchError on any failure."""
    request_headers = {"User-Agent": user_agent, **(headers or {})}
    try:
        resp = await client.get(
            url,
            follow_redirects=True,
            timeout=timeout,
            headers=request_headers,
        )
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"HTTP {exc.response.status_code} for {url}",
            url=url,
            status_code=exc.response.status_code,
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"{type(exc).__name__} for {url}: {exc}", url=url) from exc

    if require_html:
        content_type = resp.headers.get("content-type", "")
        if "text/html" not in content_type:
            raise FetchError(f"Non-HTML content at {url} ({content_type})", url=url)

    if len(resp.content) > MAX_BODY:
        raise FetchError(f"Oversized page {url} ({len(resp.content)} bytes)", url=url)

    return resp.text
