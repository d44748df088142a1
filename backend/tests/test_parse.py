import json

RESUME = """Jane Doe
jane.doe@example.com
Software Engineer, Example Corp, June 2021 - Present
Built FastAPI services handling partner integrations."""


def test_parse_cv_in_mock_mode_flattens_record(client):
    r = client.post("/api/parse-cv", json={"resumeText": RESUME, "filename": "jane.pdf"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["full_name"] == "Jane Doe"
    assert data["linkedin_url"] == "https://linkedin.com/in/janedoe"
    assert data["technical_skills"]["languages"] == ["Python", "TypeScript"]
    assert data["work_experience"][0]["company"] == "Example Corp"
    assert data["original_filename"] == "jane.pdf"
    assert data["parse_status"] == "parsed"


def test_parse_cv_tolerates_nulls_and_missing_sections(client, fake_provider):
    fake_provider.responses["parse_cv"] = json.dumps({
        "contact": {"full_name": "Jane Doe", "email": None},
        "summary": None,
        "experience": None,
        "skills": {"languages": ["Go"], "cloud": None},
    })
    r = client.post("/api/parse-cv", json={"resumeText": RESUME})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["email"] is None
    assert data["work_experience"] == []
    assert data["technical_skills"] == {"languages": ["Go"], "frameworks": [], "tools": [], "cloud": []}
    assert data["original_filename"] is None


def test_parse_cv_uses_exponential_retry(client, fake_provider):
    fake_provider.responses["parse_cv"] = "{}"
    client.post("/api/parse-cv", json={"resumeText": RESUME})
    retry = fake_provider.calls[0]["retry"]
    assert (retry.max_attempts, retry.base_delay, retry.backoff) == (3, 1.0, "exponential")


def test_parse_cv_bad_output_is_502(client, fake_provider):
    fake_provider.responses["parse_cv"] = json.dumps({"experience": "lots"})
    r = client.post("/api/parse-cv", json={"resumeText": RESUME})
    assert r.status_code == 502
    assert r.json()["details"][0].startswith("experience:")


def test_analyze_resume_persists_analysis(client):
    from resume_roast.models import ResumeAnalysis  # type: ignore

    r = client.post("/api/analyze-resume", json={
        "file_content": RESUME,
        "file_name": "jane.txt",
        "file_size": len(RESUME),
        "session_id": "sess-9",
    })
    assert r.status_code == 200
    analysis = r.json()["analysis"]
    assert analysis["ats_score"] == 72
    assert analysis["sections"][0]["name"] == "Contact Information"
    assert analysis["file_name"] == "jane.txt"

    with client.app.state.session_factory() as db:
        row = db.get(ResumeAnalysis, analysis["id"])
        assert row.session_id == "sess-9"
        assert row.ats_score == 72
        assert len(row.sections) == 4


def test_analyze_resume_rejects_out_of_range_section_score(client, fake_provider):
    fake_provider.responses["analyze_resume"] = json.dumps({
        "ats_score": 80,
        "overall_feedback": "Good.",
        "sections": [{"name": "Skills", "score": 150, "feedback": "?"}],
    })
    r = client.post("/api/analyze-resume", json={"file_content": RESUME})
    assert r.status_code == 502
    assert r.json()["details"] == ["sections.0.score: Number must be between 0 and 100"]
