"""Tests for ReportExporter."""

import csv
import json

import pytest

from prospector.exceptions.custom import ExportError
from prospector.schemas.contacts import ContactForm, ProspectRecord
from prospector.schemas.responses import PipelineResult, PipelineSummary
from prospector.schemas.search import SearchResult
from prospector.services.exporter import CSV_COLUMNS, ReportExporter, build_csv_rows


@pytest.fixture
def exporter(tmp_path):
    return ReportExporter(tmp_path / "out")


@pytest.fixture
def records():
    return [
        ProspectRecord(
            url="agency.com",
            emails=["hello@agency.com", "jobs@agency.com"],
            phones=["555-123-4567", "+1 555 000 1111"],
            social_media={"facebook": "https://facebook.com/agency"},
            contact_forms=[ContactForm(page_url="https://agency.com/contact")],
            is_platform=True,
            indicator="/wp-content/",
        ),
        ProspectRecord(url="quiet.org", is_platform=False),
        ProspectRecord(url="shop.io", emails=["hello@agency.com"], is_platform=True, indicator="woocommerce"),
    ]


def test_csv_rows_one_per_email(records):
    rows = build_csv_rows(records)
    assert [(r["url"], r["email"]) for r in rows] == [
        ("agency.com", "hello@agency.com"),
        ("agency.com", "jobs@agency.com"),
        ("quiet.org", ""),
        ("shop.io", "hello@agency.com"),
    ]
    assert rows[0]["phones"] == "555-123-4567; +1 555 000 1111"
    assert rows[0]["has_contact_form"] == "Yes"
    assert rows[0]["platform_detected"] == "Yes"
    assert rows[2]["platform_detected"] == "No"
    assert rows[2]["detection_method"] == ""


def test_export_structured(exporter, records):
    path = exporter.export_structured(records, "contacts.json")
    document = json.loads(path.read_text())
    assert document["total_sites"] == 3
    assert document["total_emails_found"] == 3
    assert document["data"][0]["social_media"]["facebook"] == "https://facebook.com/agency"
    assert "export_date" in document
    assert all(key == key.lower() for key in document)


def test_export_tabular(exporter, records):
    path = exporter.export_tabular(records, "contacts.csv")
    with path.open(newline="") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == [title for _, title in CSV_COLUMNS]
    assert len(rows) == 5
    assert rows[1][0] == "agency.com"


def test_export_flat_list_sorted_unique(exporter, records):
    path = exporter.export_flat_list(records, "emails.txt")
    assert path.read_text() == "hello@agency.com\njobs@agency.com"


def test_export_narrative(exporter, records):
    path = exporter.export_narrative(records)
    assert path.name.startswith("scraping_report_")
    text = path.read_text()
    assert "Total sites processed: 3" in text
    assert "WordPress sites detected: 2 (66.7%)" in text
    assert "Unique email addresses: 2" in text


def test_export_all(exporter, records):
    paths = exporter.export_all(records, "batch")
    assert paths["json"].name == "batch.json"
    assert paths["csv"].name == "batch.csv"
    assert paths["email_list"].name == "batch_emails.txt"
    assert all(p.exists() for p in paths.values())
    assert exporter.output_dir.is_dir()


def test_export_empty_batch(exporter):
    paths = exporter.export_all([], "empty")
    assert json.loads(paths["json"].read_text())["total_sites"] == 0
    assert paths["email_list"].read_text() == ""


def test_export_search_results(exporter):
    results = [SearchResult(url="https://a.com/", title="A", source_query="q")]
    path = exporter.export_search_results(results, "search.json")
    document = json.loads(path.read_text())
    assert document["totalResults"] == 1
    assert document["results"][0]["source"] == "google_search"


def test_export_summary_report(exporter):
    result = PipelineResult(summary=PipelineSummary(total_search_results=4))
    path = exporter.export_summary_report(result, "run")
    assert path.name.startswith("run_summary_")
    assert "Total search results: 4" in path.read_text()


def test_unwritable_output_dir(tmp_path, records):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    exporter = ReportExporter(blocker / "out")
    with pytest.raises(ExportError):
        exporter.export_structured(records)
