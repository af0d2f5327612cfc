from datetime import datetime, timezone

from prospector.mappers.report_builder import (
    build_pipeline_report,
    build_recommendations,
    build_scrape_report,
    format_counts,
)
from prospector.schemas.contacts import ContactForm, ProspectRecord
from prospector.schemas.responses import PipelineSummary

NOW = datetime(2026, 2, 13, 15, 30, tzinfo=timezone.utc)


def _records():
    return [
        ProspectRecord(
            url="agency.com",
            emails=["hello@agency.com"],
            social_media={"facebook": "https://facebook.com/agency", "instagram": "https://instagram.com/a"},
            contact_forms=[ContactForm(page_url="https://agency.com/contact")],
            is_platform=True,
            indicator="/wp-content/",
        ),
        ProspectRecord(url="studio.de", is_platform=False),
    ]


def test_format_counts():
    assert format_counts({"com": 2, "org": 1}, prefix=".") == ".com: 2\n.org: 1"
    assert format_counts({}) == ""


def test_scrape_report():
    report = build_scrape_report(_records(), now=NOW)
    assert "Scan Date: 2026-02-13T15:30:00+00:00" in report
    assert "Total sites processed: 2" in report
    assert "WordPress sites detected: 1 (50.0%)" in report
    assert "Sites with emails found: 1 (50.0%)" in report
    assert "/wp-content/: 1" in report
    assert ".com: 1" in report
    assert ".de: 1" in report
    assert "1 sites have contact forms" in report
    assert "Facebook: 1 sites" in report
    assert "Twitter: 0 sites" in report
    assert "Instagram: 1 sites" in report


def test_scrape_report_empty_batch():
    report = build_scrape_report([], now=NOW)
    assert "Total sites processed: 0" in report
    assert "WordPress sites detected: 0 (0.0%)" in report


def test_recommendations_for_weak_run():
    summary = PipelineSummary(
        confirmed_platform_sites=10,
        platform_detection_rate=20.0,
        sites_with_emails=1,
        total_emails=1,
        avg_emails_per_site=1.0,
    )
    recommendations = build_recommendations(summary)
    assert len(recommendations) == 5
    assert recommendations[0].startswith("Consider refining search queries")


def test_recommendations_for_strong_run_without_emails():
    summary = PipelineSummary(platform_detection_rate=80.0, avg_emails_per_site=2.0)
    assert build_recommendations(summary) == [
        "Great results! Consider expanding to additional industries or keywords"
    ]


def test_pipeline_report():
    summary = PipelineSummary(
        total_search_results=12,
        sites_validated=4,
        confirmed_platform_sites=2,
        platform_detection_rate=50.0,
        sites_with_emails=1,
        total_emails=1,
        unique_emails=1,
        avg_emails_per_site=1.0,
    )
    report = build_pipeline_report(summary, _records(), now=NOW)
    assert "Date: 2026-02-13T15:30:00+00:00" in report
    assert "Total search results: 12" in report
    assert "Search queries used: Multiple" in report
    assert "WordPress detection rate: 50.0%" in report
    assert "/wp-content/: 1" in report
    assert "* Verify email addresses before marketing campaigns" in report


def test_pipeline_report_without_contacts():
    report = build_pipeline_report(PipelineSummary(), [], now=NOW)
    assert "No domain analysis available" in report
    assert "No detection data available" in report
