import pytest

from resume_roast.validation import validate_roast_request, validate_roast_response  # type: ignore

RESUME = "Jane Doe - Backend engineer with 3 years of Python and FastAPI experience."


def _roast(**overrides):
    body = {
        "score": 75,
        "verdict": "Apply",
        "roast": {
            "summary": "ok",
            "skills": "ok",
            "projects": "ok",
            "experience": "ok",
            "formatting": "ok",
        },
        "atsMatch": {"percentage": 50, "missingSkills": ["Go"]},
        "fixes": {"summaryFix": "ok", "bulletFixes": ["a", "b"]},
    }
    body.update(overrides)
    return body


def test_valid_request_passes():
    res = validate_roast_request({"resumeText": RESUME, "tone": "senior", "language": "english"})
    assert res.ok
    assert res.data.resumeText == RESUME
    assert res.data.jobDescription is None


def test_short_resume_reports_minimum():
    res = validate_roast_request({"resumeText": "too short!", "tone": "senior", "language": "english"})
    assert not res.ok
    assert res.errors == ["resumeText: resumeText must be at least 30 chars"]


def test_resume_length_bounds_are_inclusive():
    assert validate_roast_request({"resumeText": "x" * 30, "tone": "hr", "language": "english"}).ok
    assert validate_roast_request({"resumeText": "x" * 50_000, "tone": "hr", "language": "english"}).ok
    too_long = validate_roast_request({"resumeText": "x" * 50_001, "tone": "hr", "language": "english"})
    assert too_long.errors == ["resumeText: resumeText must be 50000 chars or fewer"]


def test_prohibited_content_is_case_insensitive():
    res = validate_roast_request({
        "resumeText": RESUME + " <SCRIPT>alert(1)</SCRIPT>",
        "tone": "dark",
        "language": "english",
    })
    assert res.errors == ["resumeText: resumeText contains prohibited content"]


def test_every_failed_field_is_reported():
    res = validate_roast_request({
        "resumeText": RESUME,
        "jobDescription": "j" * 30_001,
        "tone": "angry",
        "language": "french",
    })
    assert not res.ok
    paths = [e.split(":")[0] for e in res.errors]
    assert paths == ["jobDescription", "tone", "language"]
    assert res.errors[0] == "jobDescription: jobDescription must be 30000 chars or fewer"


def test_non_string_resume_rejected():
    res = validate_roast_request({"resumeText": 12345, "tone": "senior", "language": "english"})
    assert not res.ok
    assert res.errors[0].startswith("resumeText:")


def test_response_accepts_missing_verdict():
    body = _roast()
    del body["verdict"]
    res = validate_roast_response(body)
    assert res.ok
    assert res.data.verdict is None


def test_response_rejects_string_score():
    res = validate_roast_response(_roast(score="75"))
    assert not res.ok
    assert res.errors[0].startswith("score:")


def test_response_rejects_out_of_range_and_bool():
    assert not validate_roast_response(_roast(score=101)).ok
    assert not validate_roast_response(_roast(score=-1)).ok
    assert not validate_roast_response(_roast(score=True)).ok
    assert validate_roast_response(_roast(score=0)).ok
    assert validate_roast_response(_roast(score=100)).ok


def test_response_rejects_bad_nested_fields():
    body = _roast(atsMatch={"percentage": 50, "missingSkills": "Go"})
    body["roast"]["skills"] = 3
    res = validate_roast_response(body)
    assert not res.ok
    assert "roast.skills" in [e.split(":")[0] for e in res.errors]
    assert "atsMatch.missingSkills" in [e.split(":")[0] for e in res.errors]


def test_response_rejects_unknown_verdict():
    res = validate_roast_response(_roast(verdict="Maybe"))
    assert not res.ok
    assert res.errors[0].startswith("verdict:")


def test_valid_request_echoes_every_field():
    raw = {"resumeText": RESUME, "jobDescription": "Python role", "tone": "friendly", "language": "hinglish"}
    res = validate_roast_request(raw)
    assert res.data.model_dump() == raw


@pytest.mark.parametrize("marker", ["<SvG", "<sCrIpT", "Data:Image/", "APPLICATION/Pdf", "Base64,"])
def test_every_prohibited_marker_is_rejected(marker):
    res = validate_roast_request({"resumeText": f"{RESUME} {marker} tail", "tone": "hr", "language": "english"})
    assert res.errors == ["resumeText: resumeText contains prohibited content"]


@pytest.mark.parametrize("marker", ["<svg", "<script", "data:image/", "application/pdf", "base64,"])
def test_marker_rejected_at_minimum_length(marker):
    text = marker + "x" * (30 - len(marker))
    assert len(text) == 30
    res = validate_roast_request({"resumeText": text, "tone": "hr", "language": "english"})
    assert res.errors == ["resumeText: resumeText contains prohibited content"]


def test_job_description_may_be_omitted_but_not_null():
    base = {"resumeText": RESUME, "tone": "senior", "language": "english"}
    assert validate_roast_request(base).ok
    res = validate_roast_request({**base, "jobDescription": None})
    assert res.errors == ["jobDescription: jobDescription must be a string when present"]
