from resume_roast.schemas import ContactInfo  # type: ignore
from resume_roast.tailor import extract_contact_info, keyword_ats_score, resolve_contact  # type: ignore

RESUME = """Resume
Jane Doe
jane.doe@example.com | +1 (555) 123-4567
www.linkedin.com/in/jane-doe

Experience
Software Engineer at Acme"""


def test_extract_contact_info_from_header():
    contact = extract_contact_info(RESUME)
    assert contact.name == "Jane Doe"
    assert contact.email == "jane.doe@example.com"
    assert contact.phone == "+1 (555) 123-4567"
    assert contact.linkedin == "https://www.linkedin.com/in/jane-doe"


def test_extract_contact_info_handles_missing_fields():
    contact = extract_contact_info("experience only, lowercase text without contact details")
    assert contact == ContactInfo()


def test_resolve_contact_prefers_caller_then_resume_then_placeholder():
    given = ContactInfo(name="J. Doe")
    contact = resolve_contact(given, "Nothing useful\nemail me: jd@example.org")
    assert contact.name == "J. Doe"
    assert contact.email == "jd@example.org"
    assert contact.phone == "(555) 123-4567"
    assert contact.linkedin == "https://linkedin.com/in/professional"


def test_resolve_contact_keeps_complete_input():
    given = ContactInfo(name="Jane", email="jane@example.com")
    assert resolve_contact(given, RESUME) is given


def test_keyword_ats_score_is_clamped():
    assert keyword_ats_score("a an of", "anything") == 75
    jd = " ".join(f"skill{i}" for i in range(200))
    assert keyword_ats_score(jd, jd) == 98
    # 30 matched words: 70 + 10
    jd = " ".join(f"word{i:02d}" for i in range(30))
    assert keyword_ats_score(jd, jd) == 80
