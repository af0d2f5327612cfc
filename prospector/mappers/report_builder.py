from datetime import datetime, timezone

from prospector.mappers.summary import detection_method_counts, top_level_domain_counts, unique_emails
from prospector.schemas.contacts import SOCIAL_PLATFORMS, ProspectRecord
from prospector.schemas.responses import PipelineSummary

_SOCIAL_LABELS = {
    "facebook": "Facebook",
    "twitter": "Twitter",
    "linkedin": "LinkedIn",
    "instagram": "Instagram",
}


def _pct(part: int, whole: int) -> str:
    return f"{(part / whole * 100):.1f}" if whole else "0.0"


def _heading(title: str, underline: str = "-") -> list[str]:
    return [title, underline * len(title)]


def format_counts(counts: dict[str, int], prefix: str = "") -> str:
    return "\n".join(f"{prefix}{key}: {count}" for key, count in counts.items())


def build_scrape_report(records: list[ProspectRecord], now: datetime | None = None) -> str:
    """Plain-text report for a batch of scraped sites."""
    now = now or datetime.now(timezone.utc)
    total = len(records)
    platform = sum(1 for r in records if r.is_platform)
    with_emails = sum(1 for r in records if r.emails)
    total_emails = sum(len(r.emails) for r in records)
    with_forms = sum(1 for r in records if r.contact_forms)

    lines = [
        "",
        *_heading("WordPress Email Scraping Report", "="),
        "",
        f"Scan Date: {now.isoformat()}",
        "",
        *_heading("Summary:"),
        f"Total sites processed: {total}",
        f"WordPress sites detected: {platform} ({_pct(platform, total)}%)",
        f"Sites with emails found: {with_emails} ({_pct(with_emails, total)}%)",
        f"Total email addresses found: {total_emails}",
        f"Unique email addresses: {len(unique_emails(records))}",
        "",
        *_heading("WordPress Detection Methods:"),
        format_counts(detection_method_counts(records)),
        "",
        *_heading("Top Level Domains:"),
        format_counts(top_level_domain_counts(records), prefix="."),
        "",
        *_heading("Sites with Contact Forms:"),
        f"{with_forms} sites have contact forms",
        "",
        *_heading("Social Media Presence:"),
    ]
    for platform_name in SOCIAL_PLATFORMS:
        count = sum(1 for r in records if r.social_media.get(platform_name))
        lines.append(f"{_SOCIAL_LABELS[platform_name]}: {count} sites")
    return "\n".join(lines) + "\n"


def build_recommendations(summary: PipelineSummary) -> list[str]:
    recommendations: list[str] = []
    if summary.platform_detection_rate < 50:
        recommendations.append(
            "Consider refining search queries to target WordPress sites more specifically"
        )
    if summary.sites_with_emails < summary.confirmed_platform_sites * 0.3:
        recommendations.append(
            "Many sites lack visible contact information - consider expanding search to more page types"
        )
    if summary.avg_emails_per_site < 1.5:
        recommendations.append(
            "Low email extraction rate - sites may have limited public contact info"
        )
    if summary.total_emails > 0:
        recommendations.append("Verify email addresses before marketing campaigns")
        recommendations.append("Ensure compliance with GDPR and CAN-SPAM regulations")
    if not recommendations:
        recommendations.append("Great results! Consider expanding to additional industries or keywords")
    return recommendations


def build_pipeline_report(
    summary: PipelineSummary,
    contact_data: list[ProspectRecord],
    now: datetime | None = None,
) -> str:
    """Plain-text summary of a prospecting run, with recommendations."""
    now = now or datetime.now(timezone.utc)
    methods = format_counts(detection_method_counts(contact_data))
    domains = format_counts(top_level_domain_counts(contact_data), prefix=".")

    lines = [
        "",
        *_heading("WordPress Prospecting Summary Report", "="),
        "",
        f"Date: {now.isoformat()}",
        "",
        *_heading("Search Results:"),
        f"Total search results: {summary.total_search_results}",
        f"Search queries used: {summary.search_queries or 'Multiple'}",
        "",
        *_heading("WordPress Validation:"),
        f"Sites validated: {summary.sites_validated}",
        f"Confirmed WordPress sites: {summary.confirmed_platform_sites}",
        f"WordPress detection rate: {summary.platform_detection_rate}%",
        "",
        *_heading("Contact Information:"),
        f"Sites with contact info: {summary.sites_with_emails}",
        f"Total email addresses: {summary.total_emails}",
        f"Unique email addresses: {summary.unique_emails}",
        f"Average emails per site: {summary.avg_emails_per_site}",
        "",
        *_heading("Top Level Domains:"),
        domains or "No domain analysis available",
        "",
        *_heading("WordPress Detection Methods:"),
        methods or "No detection data available",
        "",
        *_heading("Recommendations:"),
        *(f"* {r}" for r in build_recommendations(summary)),
    ]
    return "\n".join(lines) + "\n"
