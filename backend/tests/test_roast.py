import dataclasses
import json

import pytest
from fastapi.testclient import TestClient

from resume_roast.ai_services import ProviderHTTPError, ProviderTimeout  # type: ignore

RESUME = "Jane Doe\nBackend engineer with 3 years of Python, FastAPI and PostgreSQL experience."
BODY = {"resumeText": RESUME, "jobDescription": "Python backend role", "tone": "senior", "language": "english"}


def roast_json(score=75, verdict=None, **overrides):
    data = {
        "score": score,
        "roast": {
            "summary": "Vague.",
            "skills": "Unordered.",
            "projects": "No outcomes.",
            "experience": "No metrics.",
            "formatting": "Fine.",
        },
        "atsMatch": {"percentage": 55, "missingSkills": ["Kubernetes"]},
        "fixes": {"summaryFix": "Lead with impact.", "bulletFixes": ["Add numbers."]},
    }
    if verdict is not None:
        data["verdict"] = verdict
    data.update(overrides)
    return json.dumps(data)


def test_health(client):
    r = client.get("/_health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_roast_in_mock_mode_returns_canned_result(client):
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 200
    data = r.json()
    assert data["score"] == 62
    assert data["verdict"] == "Don't Apply"
    assert data["atsMatch"]["missingSkills"] == ["TypeScript", "Node.js"]
    assert r.headers["X-RateLimit-Remaining"] == "9"


def test_short_resume_is_rejected_with_details(client):
    r = client.post("/api/roast", json={**BODY, "resumeText": "0123456789"})
    assert r.status_code == 400
    assert r.json() == {
        "error": "Invalid input",
        "details": ["resumeText: resumeText must be at least 30 chars"],
    }
    assert r.headers["X-RateLimit-Remaining"] == "9"


@pytest.mark.parametrize("payload", ["not json", "[1, 2]", ""])
def test_non_object_body_is_invalid_input(client, payload):
    r = client.post("/api/roast", content=payload, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid input"


def test_eleventh_request_is_rate_limited(client):
    headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
    for i in range(10):
        r = client.post("/api/roast", json=BODY, headers=headers)
        assert r.status_code == 200
        assert r.headers["X-RateLimit-Remaining"] == str(9 - i)

    r = client.post("/api/roast", json=BODY, headers=headers)
    assert r.status_code == 429
    assert r.json() == {"error": "Rate limit exceeded"}
    assert r.headers["X-RateLimit-Remaining"] == "0"

    # another client still has its own quota
    r = client.post("/api/roast", json=BODY, headers={"X-Forwarded-For": "198.51.100.1"})
    assert r.status_code == 200


def test_rate_limit_applies_before_validation(client):
    for _ in range(10):
        client.post("/api/roast", json={"resumeText": "short"})
    r = client.post("/api/roast", json={"resumeText": "short"})
    assert r.status_code == 429


def test_get_is_method_not_allowed(client):
    r = client.get("/api/roast")
    assert r.status_code == 405
    assert r.json() == {"error": "Method Not Allowed"}
    assert "X-RateLimit-Remaining" not in r.headers


@pytest.mark.parametrize("score,verdict", [(75, "Apply"), (70, "Apply"), (55, "Don't Apply"), (40, "Don't Apply"), (20, "High Risk")])
def test_missing_verdict_is_filled_from_score(client, fake_provider, score, verdict):
    fake_provider.responses["roast"] = roast_json(score=score)
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 200
    assert r.json()["verdict"] == verdict


def test_contradicting_verdict_is_replaced(client, fake_provider):
    fake_provider.responses["roast"] = roast_json(score=20, verdict="Apply")
    r = client.post("/api/roast", json=BODY)
    assert r.json()["verdict"] == "High Risk"


def test_fenced_model_output_is_extracted(client, fake_provider):
    fake_provider.responses["roast"] = "Sure! Here is the review:\n```json\n" + roast_json(score=81) + "\n```"
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 200
    assert r.json()["score"] == 81


def test_prompt_is_built_from_request(client, fake_provider):
    fake_provider.responses["roast"] = roast_json()
    client.post("/api/roast", json={**BODY, "tone": "friendly"})
    call = fake_provider.calls[0]
    assert RESUME in call["prompt"]
    assert "Tone: friendly" in call["prompt"]
    assert call["retry"].max_attempts == 1
    assert call["timeout"] == 20.0


def test_unparseable_output_is_502(client, fake_provider):
    fake_provider.responses["roast"] = "I cannot help with that."
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 502
    assert r.json() == {"error": "Invalid AI response format"}
    assert r.headers["X-RateLimit-Remaining"] == "9"


def test_schema_violation_is_502_with_details(client, fake_provider):
    fake_provider.responses["roast"] = roast_json(score="75")
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 502
    data = r.json()
    assert data["error"] == "AI response validation failed"
    assert data["details"][0].startswith("score:")


@pytest.mark.parametrize("error", [ProviderHTTPError(503, "overloaded"), ProviderTimeout("slow")])
def test_provider_failure_is_502(client, fake_provider, error):
    fake_provider.errors["roast"] = error
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 502
    assert r.json() == {"error": "AI service error"}


def test_short_pasted_resume_gets_full_schema(client):
    r = client.post("/api/roast", json={
        "resumeText": "Built two React projects and familiar with Node.js.",
        "tone": "friendly",
        "language": "english",
    })
    assert r.status_code == 200
    data = r.json()
    assert 0 <= data["score"] <= 100
    assert data["verdict"] in ("Apply", "Don't Apply", "High Risk")
    assert set(data["roast"]) == {"summary", "skills", "projects", "experience", "formatting"}
    assert isinstance(data["atsMatch"]["missingSkills"], list)
    assert isinstance(data["fixes"]["bulletFixes"], list)


def test_database_rate_limit_backend_end_to_end(settings):
    from resume_roast.main import create_app  # type: ignore

    client = TestClient(create_app(dataclasses.replace(settings, rate_limit_backend="database")))
    for i in range(10):
        r = client.post("/api/roast", json=BODY)
        assert r.status_code == 200
        assert r.headers["X-RateLimit-Remaining"] == str(9 - i)
    r = client.post("/api/roast", json=BODY)
    assert r.status_code == 429
    assert r.headers["X-RateLimit-Remaining"] == "0"
