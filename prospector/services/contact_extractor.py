import logging
import re
from collections.abc import Callable
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from email_validator import EmailNotValidError, validate_email

from prospector.config import ScrapeOptions
from prospector.exceptions.custom import FetchError, UrlValidationError
from prospector.schemas.contacts import ContactForm, ContactRecord
from prospector.services.fetcher import ensure_scheme, fetch_page

logger = logging.getLogger(__name__)

# Candidate pages probed on every site, in order
CONTACT_PATHS = (
    "",
    "/contact",
    "/contact-us",
    "/about",
    "/about-us",
    "/team",
    "/staff",
    "/privacy",
    "/privacy-policy",
    "/terms",
    "/legal",
    "/imprint",
    "/impressum",
)

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")

_OBFUSCATED_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9._%+\-]+\s*\[\s*at\s*\]\s*[a-zA-Z0-9.\-]+\s*\[\s*dot\s*\]\s*[a-zA-Z]{2,}",
    re.IGNORECASE,
)
_AT_TOKEN_RE = re.compile(r"\s*\[\s*at\s*\]\s*", re.IGNORECASE)
_DOT_TOKEN_RE = re.compile(r"\s*\[\s*dot\s*\]\s*", re.IGNORECASE)

_PHONE_RE = re.compile(r"(\+?\d{1,4}[-.\s]?)?\(?\d{1,4}\)?[-.\s]?\d{1,4}[-.\s]?\d{1,9}")

# Checked in order; the first platform whose domain appears in the link wins
_SOCIAL_DOMAINS = (
    ("facebook", "facebook.com"),
    ("twitter", "twitter.com"),
    ("linkedin", "linkedin.com"),
    ("instagram", "instagram.com"),
)


def is_valid_email(email: str) -> bool:
    """Syntactic check only: no DNS, no mailbox verification."""
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def extract_emails_from_text(text: str) -> list[str]:
    seen: set[str] = set()
    emails: list[str] = []
    for match in _EMAIL_RE.findall(text):
        email = match.lower()
        if email not in seen and is_valid_email(email):
            seen.add(email)
            emails.append(email)
    return emails


def deobfuscate_emails(text: str) -> list[str]:
    """Rewrite 'name [at] host [dot] com' patterns into addresses."""
    emails: list[str] = []
    for match in _OBFUSCATED_EMAIL_RE.findall(text):
        email = _AT_TOKEN_RE.sub("@", match)
        email = _DOT_TOKEN_RE.sub(".", email)
        email = re.sub(r"\s", "", email).lower()
        if is_valid_email(email) and email not in emails:
            emails.append(email)
    return emails


def _digits_only(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def extract_phones_from_text(text: str) -> list[str]:
    """Phones keep their page formatting; at least 7 digits required."""
    phones: list[str] = []
    for match in _PHONE_RE.finditer(text):
        phone = match.group(0).strip()
        if len(_digits_only(phone)) >= 7 and phone not in phones:
            phones.append(phone)
    return phones


# --- Noise filter ---

NoiseRule = Callable[[str], bool]

_NOISE_PATTERNS = (
    re.compile(r"^no-?reply", re.IGNORECASE),
    re.compile(r"^donotreply", re.IGNORECASE),
    re.compile(r"^support", re.IGNORECASE),
    re.compile(r"^help", re.IGNORECASE),
    re.compile(r"^info@example", re.IGNORECASE),
    re.compile(r"^test@", re.IGNORECASE),
    re.compile(r"^admin@example", re.IGNORECASE),
    re.compile(r"^example@", re.IGNORECASE),
)


def _matches_noise_pattern(email: str) -> bool:
    return any(pattern.search(email) for pattern in _NOISE_PATTERNS)


def _is_example_domain(email: str) -> bool:
    domain = email.rpartition("@")[2].lower()
    return "example" in domain.split(".")


NOISE_RULES: tuple[NoiseRule, ...] = (_matches_noise_pattern, _is_example_domain)


def is_noise_email(email: str) -> bool:
    return any(rule(email) for rule in NOISE_RULES)


def filter_emails(emails: list[str]) -> list[str]:
    return [email for email in emails if not is_noise_email(email)]


# --- Page-level extraction ---


def extract_page_emails(soup: BeautifulSoup) -> list[str]:
    """Emails from text, mailto: links, data-email attributes and obfuscated text."""
    text = soup.get_text(separator=" ")
    emails = extract_emails_from_text(text)

    candidates: list[str] = []
    for a in soup.find_all("a", href=True):
        href = a["href"]
        if href.lower().startswith("mailto:"):
            candidates.append(href[7:].split("?")[0].strip())
    for element in soup.find_all(attrs={"data-email": True}):
        candidates.append(element["data-email"].strip())
    candidates.extend(deobfuscate_emails(text))

    for candidate in candidates:
        email = candidate.lower()
        if email not in emails and is_valid_email(email):
            emails.append(email)
    return emails


def extract_social_links(soup: BeautifulSoup) -> dict[str, str]:
    links: dict[str, str] = {}
    for a in soup.find_all("a", href=True):
        href = a["href"]
        for platform, domain in _SOCIAL_DOMAINS:
            if domain in href:
                links[platform] = href
                break
    return links


def _is_email_field(field) -> bool:
    return field.name == "input" and (
        (field.get("type") or "").lower() == "email"
        or "email" in (field.get("name") or "")
    )


def _is_message_field(field) -> bool:
    return field.name == "textarea" or (
        field.name == "input" and "message" in (field.get("name") or "")
    )


def extract_contact_forms(soup: BeautifulSoup, page_url: str) -> list[ContactForm]:
    forms: list[ContactForm] = []
    for form in soup.find_all("form"):
        fields = form.find_all(["input", "textarea"])
        if any(_is_email_field(f) for f in fields) and any(_is_message_field(f) for f in fields):
            forms.append(ContactForm(
                page_url=page_url,
                action=form.get("action") or "",
                method=form.get("method") or "POST",
            ))
    return forms


def normalize_base_url(base_url: str) -> str:
    if not base_url or not base_url.strip():
        raise UrlValidationError("Empty URL", url=base_url)
    url = ensure_scheme(base_url).rstrip("/")
    try:
        host = urlparse(url).hostname
    except ValueError as exc:
        raise UrlValidationError(f"Malformed URL: {base_url}", url=base_url) from exc
    if not host:
        raise UrlValidationError(f"URL has no host: {base_url}", url=base_url)
    return url


class ContactExtractorService:
    def __init__(self, client: httpx.AsyncClient, options: ScrapeOptions | None = None):
        self._client = client
        self._options = options or ScrapeOptions()

    async def extract(self, base_url: str) -> ContactRecord:
        """Harvest contact data from the candidate pages of a site, noise emails removed."""
        record = await self.extract_contact_info(base_url)
        return record.model_copy(update={"emails": filter_emails(record.emails)})

    async def extract_contact_info(self, base_url: str) -> ContactRecord:
        base = normalize_base_url(base_url)

        emails: list[str] = []
        phones: list[str] = []
        social: dict[str, str] = {}
        forms: list[ContactForm] = []

        for path in CONTACT_PATHS:
            page_url = f"{base}{path}"
            logger.debug("Extracting from %s", page_url)
            try:
                html = await fetch_page(
                    self._client,
                    page_url,
                    timeout=self._options.timeout,
                    user_agent=self._options.user_agent,
                    require_html=True,
                )
            except FetchError as exc:
                logger.warning("Failed to process %s: %s", page_url, exc.message)
                await self._options.pacing.wait()
                continue

            soup = BeautifulSoup(html, "html.parser")
            for email in extract_page_emails(soup):
                if email not in emails:
                    emails.append(email)
            for phone in extract_phones_from_text(soup.get_text(separator=" ")):
                if phone not in phones:
                    phones.append(phone)
            social.update(extract_social_links(soup))
            forms.extend(extract_contact_forms(soup, page_url))

            await self._options.pacing.wait()

        return ContactRecord(
            url=base_url,
            emails=emails,
            phones=phones,
            social_media=social,
            contact_forms=forms,
        )
