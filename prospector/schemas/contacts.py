from datetime import datetime, timezone

from pydantic import BaseModel, Field

from prospector.schemas.detection import Confidence

SOCIAL_PLATFORMS = ("facebook", "twitter", "linkedin", "instagram")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ContactForm(BaseModel):
    page_url: str
    action: str = ""
    method: str = "POST"


class ContactRecord(BaseModel):
    url: str
    emails: list[str] = []  # deduplicated, insertion order
    phones: list[str] = []  # as matched on the page
    social_media: dict[str, str] = {}  # platform -> last link seen
    contact_forms: list[ContactForm] = []
    extracted_at: datetime = Field(default_factory=_now)


class ProspectRecord(ContactRecord):
    is_platform: bool = False
    indicator: str | None = None
    confidence: Confidence = Confidence.unknown
    error: str | None = None

    @property
    def has_contact_form(self) -> bool:
        return bool(self.contact_forms)


class UrlValidation(BaseModel):
    valid: list[str] = []
    invalid: list[str] = []
