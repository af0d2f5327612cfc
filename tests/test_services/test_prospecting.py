"""Tests for ProspectingPipeline."""

import httpx
import pytest
import respx
from httpx import Response

from prospector.config import Pacing, PipelineOptions, ScrapeOptions, SearchOptions
from prospector.schemas.detection import PlatformStatus
from prospector.services.contact_extractor import ContactExtractorService
from prospector.services.exporter import ReportExporter
from prospector.services.platform_detector import PlatformDetectorService
from prospector.services.prospecting import ProspectingPipeline
from prospector.services.search_discoverer import PLATFORM_QUERIES, SearchDiscovererService
from prospector.services.site_scraper import SiteScraperService

SEARCH = "https://www.google.com/search"
NO_WAIT = Pacing(delay_ms=0)


@pytest.fixture
def client():
    return httpx.AsyncClient()


def _pipeline(client, exporter=None, **options) -> ProspectingPipeline:
    scrape_options = ScrapeOptions(pacing=NO_WAIT)
    detector = PlatformDetectorService(client, scrape_options)
    extractor = ContactExtractorService(client, scrape_options)
    return ProspectingPipeline(
        SearchDiscovererService(client, SearchOptions(pacing=NO_WAIT, max_pages=1)),
        detector,
        SiteScraperService(detector, extractor, scrape_options),
        exporter=exporter,
        options=PipelineOptions(validation_pacing=NO_WAIT, extraction_pacing=NO_WAIT, **options),
    )


def _search_page(*urls: str) -> str:
    blocks = "".join(f'<div class="g"><a href="{u}"><h3>{u}</h3></a></div>' for u in urls)
    return f"<html><body>{blocks}</body></html>"


def _mock_search(*urls: str):
    return respx.get(SEARCH).mock(return_value=Response(200, html=_search_page(*urls)))


def _mock_site(domain: str, html: str):
    pattern = domain.replace(".", r"\.")
    respx.get(f"https://{domain}").mock(return_value=Response(200, html=html))
    return respx.get(url__regex=rf"^https://{pattern}/.+").mock(return_value=Response(404))


WP_HTML = '<html><head><script src="/wp-includes/js/jquery.js"></script></head><body>{email}</body></html>'
PLAIN_HTML = "<html><body>{email}</body></html>"


@respx.mock
async def test_full_run_validates_then_extracts(client):
    _mock_search("https://wp-agency.com/about/", "https://static-shop.com/")
    _mock_site("wp-agency.com", WP_HTML.format(email="hello@wp-agency.com"))
    static_pages = _mock_site("static-shop.com", PLAIN_HTML.format(email="sales@static-shop.com"))

    result = await _pipeline(client, max_search_results=10).run(custom_queries=["q"])

    assert [r.url for r in result.search_results] == [
        "https://wp-agency.com/about", "https://static-shop.com/",
    ]
    statuses = {s.url: s.status for s in result.platform_sites}
    assert statuses == {
        "wp-agency.com": PlatformStatus.confirmed,
        "static-shop.com": PlatformStatus.not_platform,
    }
    assert [r.url for r in result.contact_data] == ["wp-agency.com"]
    assert result.contact_data[0].emails == ["hello@wp-agency.com"]

    summary = result.summary
    assert summary.total_search_results == 2
    assert summary.search_queries == len(PLATFORM_QUERIES) + 1
    assert summary.sites_validated == 2
    assert summary.confirmed_platform_sites == 1
    assert summary.platform_detection_rate == 50.0
    assert summary.sites_with_emails == 1
    assert summary.unique_emails == 1
    # Only the REST probe hits the non-WordPress site's subpages
    assert static_pages.call_count == 1


@respx.mock
async def test_no_search_results_ends_early(client):
    _mock_search()

    result = await _pipeline(client).run()

    assert result.search_results == []
    assert result.platform_sites == []
    assert result.contact_data == []
    assert result.summary.platform_detection_rate == 0.0


@respx.mock
async def test_skip_validation_forwards_every_site(client):
    _mock_search("https://wp-agency.com/", "https://static-shop.com/")
    _mock_site("wp-agency.com", WP_HTML.format(email="hello@wp-agency.com"))
    _mock_site("static-shop.com", PLAIN_HTML.format(email="sales@static-shop.com"))

    result = await _pipeline(client, validate_platform=False).run(keywords=["design"])

    assert all(s.status == PlatformStatus.not_validated for s in result.platform_sites)
    assert [r.url for r in result.contact_data] == ["wp-agency.com", "static-shop.com"]
    assert result.summary.sites_validated == 0
    assert result.summary.platform_detection_rate == 0.0
    assert result.summary.search_queries == 1
    assert result.summary.total_emails == 2


@respx.mock
async def test_repeated_host_is_crawled_once(client):
    _mock_search("https://wp-agency.com/about", "https://wp-agency.com/services")
    _mock_site("wp-agency.com", WP_HTML.format(email="hello@wp-agency.com"))

    result = await _pipeline(client, validate_platform=False).run(keywords=["design"])

    assert len(result.search_results) == 2
    assert [s.url for s in result.platform_sites] == ["wp-agency.com"]
    assert [r.url for r in result.contact_data] == ["wp-agency.com"]
    assert result.summary.total_emails == 1
    assert result.summary.unique_emails == 1


@respx.mock
async def test_repeated_host_is_detected_once(client):
    _mock_search("https://wp-agency.com/about", "https://wp-agency.com/services")
    home = respx.get("https://wp-agency.com").mock(
        return_value=Response(200, html=WP_HTML.format(email="hello@wp-agency.com")),
    )

    result = await _pipeline(client, extract_contacts=False).run(keywords=["design"])

    assert [s.url for s in result.platform_sites] == ["wp-agency.com"]
    assert result.summary.sites_validated == 1
    assert home.call_count == 1


@respx.mock
async def test_skip_extraction(client):
    _mock_search("https://wp-agency.com/")
    home = respx.get("https://wp-agency.com").mock(
        return_value=Response(200, html=WP_HTML.format(email="hello@wp-agency.com")),
    )

    result = await _pipeline(client, extract_contacts=False).run(keywords=["design"])

    assert result.platform_sites[0].status == PlatformStatus.confirmed
    assert result.contact_data == []
    assert home.call_count == 1


@respx.mock
async def test_max_search_results_caps_discovery(client):
    _mock_search("https://a.com/", "https://b.com/", "https://c.com/")

    result = await _pipeline(
        client, max_search_results=2, validate_platform=False, extract_contacts=False,
    ).run(keywords=["one", "two"])

    assert len(result.search_results) == 2


@respx.mock
async def test_find_agency_prospects_uses_industry_queries(client):
    route = _mock_search()

    await _pipeline(client).find_agency_prospects()

    queries = [call.request.url.params["q"] for call in route.calls]
    assert '"web design agency" "powered by wordpress"' in queries


@respx.mock
async def test_export_results(client, tmp_path):
    _mock_search("https://wp-agency.com/")
    _mock_site("wp-agency.com", WP_HTML.format(email="hello@wp-agency.com"))
    pipeline = _pipeline(client, exporter=ReportExporter(tmp_path))

    result = await pipeline.run(keywords=["design"])
    exports = pipeline.export_results(result, "run")

    assert exports["search_results"].name == "run_search_results.json"
    assert set(exports["contacts"]) == {"json", "csv", "email_list", "report"}
    assert exports["summary"].read_text().startswith("\nWordPress Prospecting Summary Report")


def test_export_results_requires_exporter(client):
    with pytest.raises(RuntimeError):
        _pipeline(client).export_results(None)
