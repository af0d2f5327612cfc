import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from prospector.exceptions.custom import ExportError
from prospector.mappers.report_builder import build_pipeline_report, build_scrape_report
from prospector.schemas.contacts import ProspectRecord
from prospector.schemas.responses import PipelineResult
from prospector.schemas.search import SearchResult

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    ("url", "Website URL"),
    ("email", "Email Address"),
    ("phones", "Phone Numbers"),
    ("facebook", "Facebook"),
    ("twitter", "Twitter"),
    ("linkedin", "LinkedIn"),
    ("instagram", "Instagram"),
    ("has_contact_form", "Has Contact Form"),
    ("platform_detected", "WordPress Detected"),
    ("detection_method", "Detection Method"),
    ("extracted_at", "Extracted At"),
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def build_csv_rows(records: list[ProspectRecord]) -> list[dict[str, str]]:
    """One row per (site, email); a site with no emails still gets one row."""
    rows: list[dict[str, str]] = []
    for record in records:
        base = {
            "url": record.url,
            "phones": "; ".join(record.phones),
            "facebook": record.social_media.get("facebook", ""),
            "twitter": record.social_media.get("twitter", ""),
            "linkedin": record.social_media.get("linkedin", ""),
            "instagram": record.social_media.get("instagram", ""),
            "has_contact_form": "Yes" if record.contact_forms else "No",
            "platform_detected": "Yes" if record.is_platform else "No",
            "detection_method": record.indicator or "",
            "extracted_at": record.extracted_at.isoformat() if record.extracted_at else "",
        }
        for email in record.emails or [""]:
            rows.append({**base, "email": email})
    return rows


class ReportExporter:
    def __init__(self, output_dir: str | Path = "output"):
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def _target(self, filename: str | None, prefix: str, extension: str) -> Path:
        name = filename or f"{prefix}_{_timestamp()}.{extension}"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(f"Cannot create output directory: {exc}", path=str(self._output_dir)) from exc
        return self._output_dir / name

    def _write_text(self, path: Path, content: str) -> Path:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Failed to write {path.name}: {exc}", path=str(path)) from exc
        logger.info("Wrote %s", path)
        return path

    def export_structured(self, records: list[ProspectRecord], filename: str | None = None) -> Path:
        path = self._target(filename, "wordpress_contacts", "json")
        document = {
            "export_date": datetime.now(timezone.utc).isoformat(),
            "total_sites": len(records),
            "total_emails_found": sum(len(r.emails) for r in records),
            "data": [r.model_dump(mode="json") for r in records],
        }
        return self._write_text(path, json.dumps(document, indent=2))

    def export_tabular(self, records: list[ProspectRecord], filename: str | None = None) -> Path:
        path = self._target(filename, "wordpress_contacts", "csv")
        try:
            with path.open("w", newline="", encoding="utf-8") as fh:
                writer = csv.writer(fh)
                writer.writerow([title for _, title in CSV_COLUMNS])
                for row in build_csv_rows(records):
                    writer.writerow([row[key] for key, _ in CSV_COLUMNS])
        except OSError as exc:
            raise ExportError(f"Failed to write {path.name}: {exc}", path=str(path)) from exc
        logger.info("Wrote %s", path)
        return path

    def export_flat_list(self, records: list[ProspectRecord], filename: str | None = None) -> Path:
        path = self._target(filename, "email_list", "txt")
        emails = sorted({email for r in records for email in r.emails})
        return self._write_text(path, "\n".join(emails))

    def export_narrative(self, records: list[ProspectRecord], filename: str | None = None) -> Path:
        path = self._target(filename, "scraping_report", "txt")
        return self._write_text(path, build_scrape_report(records))

    def export_all(self, records: list[ProspectRecord], prefix: str = "wordpress_scrape") -> dict[str, Path]:
        return {
            "json": self.export_structured(records, f"{prefix}.json"),
            "csv": self.export_tabular(records, f"{prefix}.csv"),
            "email_list": self.export_flat_list(records, f"{prefix}_emails.txt"),
            "report": self.export_narrative(records),
        }

    def export_search_results(self, results: list[SearchResult], filename: str | None = None) -> Path:
        path = self._target(filename, "google_search_results", "json")
        document = {
            "searchDate": datetime.now(timezone.utc).isoformat(),
            "totalResults": len(results),
            "results": [r.model_dump(mode="json") for r in results],
        }
        return self._write_text(path, json.dumps(document, indent=2))

    def export_summary_report(self, result: PipelineResult, prefix: str) -> Path:
        path = self._target(None, f"{prefix}_summary", "txt")
        return self._write_text(path, build_pipeline_report(result.summary, result.contact_data))
