from enum import StrEnum

from pydantic import BaseModel


class Confidence(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"
    unknown = "unknown"


class DetectionVerdict(BaseModel):
    url: str
    is_platform: bool = False
    indicator: str | None = None  # which check fired
    confidence: Confidence = Confidence.high
    error: str | None = None


class PlatformStatus(StrEnum):
    confirmed = "confirmed"
    not_platform = "not_platform"
    not_validated = "not_validated"


class PlatformSite(BaseModel):
    url: str
    status: PlatformStatus
    verdict: DetectionVerdict | None = None  # None when validation was skipped

    @classmethod
    def from_verdict(cls, verdict: DetectionVerdict) -> "PlatformSite":
        status = PlatformStatus.confirmed if verdict.is_platform else PlatformStatus.not_platform
        return cls(url=verdict.url, status=status, verdict=verdict)
