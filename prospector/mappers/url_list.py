from pathlib import Path
from urllib.parse import urlparse

from prospector.exceptions.custom import UrlValidationError
from prospector.schemas.contacts import UrlValidation

SAMPLE_URLS = (
    "example-wp-site1.com",
    "example-wp-site2.com",
    "another-wordpress-site.org",
    "myblog.wordpress.com",
    "company-website.net",
)


def parse_url_lines(content: str) -> list[str]:
    """One domain per line; blank lines and '#' comments are skipped."""
    urls: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    return urls


def read_urls_from_file(path: str | Path) -> list[str]:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise UrlValidationError(f"Failed to read URLs from file {path}: {exc}") from exc
    return parse_url_lines(content)


def split_url_argument(raw: str) -> list[str]:
    return [u.strip() for u in raw.split(",") if u.strip()]


def _is_parseable(url: str) -> bool:
    candidate = url if url.startswith(("http://", "https://")) else "https://" + url
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname
        parsed.port  # raises on a malformed port
    except ValueError:
        return False
    return bool(host) and " " not in url


def validate_urls(urls: list[str]) -> UrlValidation:
    """Partition input into parseable and unparseable URLs. Never raises."""
    result = UrlValidation()
    for url in urls:
        (result.valid if _is_parseable(url) else result.invalid).append(url)
    return result


def sample_url_file_content() -> str:
    lines = [
        "# WordPress prospector - sample URLs",
        "# One URL per line, comments start with #",
        "",
        *SAMPLE_URLS,
    ]
    return "\n".join(lines) + "\n"
