from collections import Counter
from urllib.parse import urlparse

from prospector.schemas.contacts import ProspectRecord
from prospector.schemas.detection import PlatformSite, PlatformStatus
from prospector.schemas.responses import PipelineSummary, ScrapeSummary
from prospector.schemas.search import SearchResult


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def unique_emails(records: list[ProspectRecord]) -> set[str]:
    return {email for record in records for email in record.emails}


def detection_method_counts(records: list[ProspectRecord]) -> dict[str, int]:
    """Indicator frequency among detected sites, most common first."""
    counts = Counter(r.indicator or "Unknown" for r in records if r.is_platform)
    return dict(counts.most_common())


def top_level_domain_counts(records: list[ProspectRecord], limit: int = 10) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for record in records:
        url = record.url if record.url.startswith("http") else f"https://{record.url}"
        try:
            host = urlparse(url).hostname
        except ValueError:
            continue
        if host:
            counts[host.rsplit(".", 1)[-1]] += 1
    return dict(counts.most_common(limit))


def compute_summary(
    search_results: list[SearchResult],
    platform_sites: list[PlatformSite],
    contact_data: list[ProspectRecord],
    search_queries: int = 0,
) -> PipelineSummary:
    validated = [s for s in platform_sites if s.status != PlatformStatus.not_validated]
    confirmed = sum(1 for s in validated if s.status == PlatformStatus.confirmed)
    with_emails = sum(1 for r in contact_data if r.emails)
    total_emails = sum(len(r.emails) for r in contact_data)

    return PipelineSummary(
        total_search_results=len(search_results),
        search_queries=search_queries,
        sites_validated=len(validated),
        confirmed_platform_sites=confirmed,
        platform_detection_rate=_percent(confirmed, len(validated)),
        sites_with_emails=with_emails,
        total_emails=total_emails,
        unique_emails=len(unique_emails(contact_data)),
        avg_emails_per_site=round(total_emails / with_emails, 1) if with_emails else 0.0,
    )


def summarize_scrape(records: list[ProspectRecord]) -> ScrapeSummary:
    return ScrapeSummary(
        total_sites=len(records),
        platform_sites=sum(1 for r in records if r.is_platform),
        sites_with_emails=sum(1 for r in records if r.emails),
        total_emails=sum(len(r.emails) for r in records),
        unique_emails=len(unique_emails(records)),
        detection_methods=detection_method_counts(records),
        errors=sum(1 for r in records if r.error),
    )
