import re
from typing import Optional

from .schemas import ContactInfo

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
LINKEDIN_RE = re.compile(r"(?:https?://)?(?:www\.)?linkedin\.com/in/[a-zA-Z0-9-]+/?", re.IGNORECASE)
NAME_RE = re.compile(r"^[A-Z][a-zA-Z'-]*(?:\s+[A-Z][a-zA-Z'-]*){1,3}$")
PHONE_LINE_RE = re.compile(r"^\+?[\d\s\-()]+$")

PLACEHOLDER_CONTACT = ContactInfo(
    name="Professional Name",
    email="professional@email.com",
    phone="(555) 123-4567",
    linkedin="https://linkedin.com/in/professional",
)


def guess_name(resume_text: str) -> Optional[str]:
    # name is usually one of the first non-empty lines
    lines = [l.strip() for l in resume_text.splitlines() if l.strip()]
    for line in lines[:10]:
        low = line.lower()
        if "resume" in low or "cv" in low or "@" in line or PHONE_LINE_RE.match(line):
            continue
        if NAME_RE.match(line) and len(line) < 50:
            return line
    return None


def extract_contact_info(resume_text: str) -> ContactInfo:
    text = resume_text or ""
    email = EMAIL_RE.search(text)
    phone = PHONE_RE.search(text)
    linkedin = LINKEDIN_RE.search(text)
    linkedin_url = None
    if linkedin:
        linkedin_url = linkedin.group(0)
        if not linkedin_url.startswith("http"):
            linkedin_url = f"https://{linkedin_url}"
    return ContactInfo(
        name=guess_name(text),
        email=email.group(0) if email else None,
        phone=phone.group(0) if phone else None,
        linkedin=linkedin_url,
    )


def resolve_contact(given: Optional[ContactInfo], resume_text: Optional[str]) -> ContactInfo:
    """Fill missing contact fields: caller's values first, then the resume, then placeholders."""
    given = given or ContactInfo()
    if given.name and given.email:
        return given
    found = extract_contact_info(resume_text or "")
    merged = {}
    for field in ("name", "email", "phone", "linkedin"):
        merged[field] = getattr(given, field) or getattr(found, field) or getattr(PLACEHOLDER_CONTACT, field)
    return ContactInfo(**merged)


def keyword_ats_score(job_description: str, resume_text: str) -> int:
    """Rough keyword-overlap score, clamped to 75..98."""
    resume = resume_text.lower()
    matched = sum(1 for kw in job_description.lower().split() if len(kw) > 3 and kw in resume)
    return min(98, max(75, 70 + matched // 3))
