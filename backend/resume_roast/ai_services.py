"""
AI gateway for the roast service.
Sends a prompt to the generative-text provider and returns the raw model text.
Parsing the model's JSON is the caller's job; this module only moves text.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 503}
API_FORMATS = ("raw", "gemini", "openai")


class ProviderError(Exception):
    retryable = False


class ProviderTimeout(ProviderError):
    retryable = True


class ProviderUnavailable(ProviderError):
    """Network-level failure: DNS, connection refused, reset mid-stream."""
    retryable = True


class ProviderHTTPError(ProviderError):
    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Provider returned {status}: {body[:500]}")

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status in RETRYABLE_STATUSES


class ProviderMalformed(ProviderError):
    """The provider envelope did not carry the generated text."""


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    base_delay: float = 1.0  # seconds
    backoff: str = "exponential"  # exponential|linear

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the zero-based `attempt` failed."""
        if self.backoff == "linear":
            return self.base_delay * (attempt + 1)
        return self.base_delay * (2 ** attempt)


NO_RETRY = RetryPolicy(max_attempts=1)


class AIProvider(ABC):
    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        task: str,
        timeout: float,
        retry: RetryPolicy = NO_RETRY,
        temperature: float = 0.0,
        max_tokens: int = 800,
    ) -> str:
        ...


# ---------------------------------------------------------------------------
# Mock provider
# ---------------------------------------------------------------------------

_MOCK_ROAST = {
    "score": 62,
    "verdict": "Don't Apply",
    "roast": {
        "summary": "Resume shows relevant tech but lacks metrics and clear impact statements.",
        "skills": "Skills listed but not prioritized for ATS; missing keywords like TypeScript and Node.js for many roles.",
        "projects": "Projects include technical work but lack measurable outcomes and clear role descriptions.",
        "experience": "Experience section is brief and missing quantifiable results.",
        "formatting": "Formatting is inconsistent: mixed bullet styles and spacing; consider uniform bullets and clear headers.",
    },
    "atsMatch": {"percentage": 42, "missingSkills": ["TypeScript", "Node.js"]},
    "fixes": {
        "summaryFix": "Rewrite the summary to highlight measurable impact and include role-focused keywords.",
        "bulletFixes": [
            "Start bullets with strong action verbs and include numbers where possible.",
            "Add missing keywords from the job description to improve ATS match.",
            "Standardize formatting: consistent bullets, fonts, and header styles.",
        ],
    },
}

_MOCK_RESUME_TEXT = """JANE DOE
jane.doe@example.com | (555) 123-4567 | linkedin.com/in/janedoe

PROFESSIONAL SUMMARY
Backend engineer with 3 years of experience building Python and TypeScript services.
Shipped REST APIs used by internal teams and reduced deployment time through CI automation.

KEY SKILLS
Python | TypeScript | Node.js | FastAPI | PostgreSQL | Docker

WORK EXPERIENCE
Software Engineer | Example Corp | 2021 - Present
- Built FastAPI services handling partner integrations
- Automated CI pipelines with Docker and GitHub Actions
- Collaborated with product teams to scope and deliver features

EDUCATION
B.S. Computer Science | State University | 2021"""

_MOCK_COVER_LETTER = """Dear Hiring Manager,

I am excited to apply for this role. Over the past three years I have built backend services in Python and TypeScript and automated the delivery pipelines around them.

At Example Corp I built FastAPI services for partner integrations and automated our CI pipelines with Docker, work that maps directly to the requirements in your posting.

I would welcome the chance to discuss how I can contribute to your team.

Sincerely,
Jane Doe"""

MOCK_RESPONSES: Dict[str, str] = {
    "roast": json.dumps(_MOCK_ROAST),
    "fix": _MOCK_RESUME_TEXT,
    "fix_cover_letter": _MOCK_COVER_LETTER,
    "fix_ats": json.dumps({
        "ats_score": 85,
        "keyword_match_percent": 80,
        "matched_keywords": ["Python", "FastAPI", "Docker"],
        "improvements_made": ["Added job keywords to the summary", "Rewrote bullets with action verbs"],
    }),
    "generate_content": json.dumps({
        "resume": "# Jane Doe\n\n## Professional Summary\nBackend engineer with 3 years of experience building Python services.\n\n## Experience\n**Software Engineer** | Example Corp | 2021 - Present\n- Built FastAPI services handling partner integrations",
        "cover_letter": _MOCK_COVER_LETTER,
        "contact_extracted": {
            "name": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "(555) 123-4567",
            "linkedin": "linkedin.com/in/janedoe",
        },
    }),
    "generate_preview": _MOCK_RESUME_TEXT,
    "preview_cover_letter": _MOCK_COVER_LETTER,
    "parse_cv": json.dumps({
        "contact": {
            "full_name": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "(555) 123-4567",
            "location": "Austin, TX",
            "linkedin": "https://linkedin.com/in/janedoe",
            "github": None,
            "portfolio": None,
        },
        "summary": "Backend engineer with 3 years of experience building Python services.",
        "experience": [{
            "company": "Example Corp",
            "title": "Software Engineer",
            "location": "Austin, TX",
            "start_date": "June 2021",
            "end_date": "Present",
            "is_current": True,
            "achievements": ["Built FastAPI services handling partner integrations"],
        }],
        "education": [{"institution": "State University", "degree": "B.S.", "major": "Computer Science", "graduation_date": "May 2021", "gpa": None}],
        "skills": {"languages": ["Python", "TypeScript"], "frameworks": ["FastAPI"], "tools": ["Docker"], "cloud": []},
        "projects": [],
        "certifications": [],
        "achievements": [],
    }),
    "analyze_resume": json.dumps({
        "ats_score": 72,
        "overall_feedback": "Solid technical base. Quantify outcomes and mirror the job's keywords to lift the score.",
        "sections": [
            {"name": "Contact Information", "score": 90, "feedback": "Complete and easy to find."},
            {"name": "Professional Summary", "score": 65, "feedback": "Add one measurable achievement."},
            {"name": "Experience", "score": 68, "feedback": "Lead bullets with action verbs and add numbers."},
            {"name": "Skills", "score": 75, "feedback": "Group skills by category."},
        ],
    }),
}


class MockProvider(AIProvider):
    """Canned responses for local development; never touches the network."""

    def __init__(self, reason: str = "using local mock responses"):
        self.calls = 0
        logger.warning(f"{reason} (no external AI calls will be made)")

    async def complete(self, prompt: str, *, task: str, timeout: float, retry: RetryPolicy = NO_RETRY,
                       temperature: float = 0.0, max_tokens: int = 800) -> str:
        self.calls += 1
        return MOCK_RESPONSES.get(task, MOCK_RESPONSES["roast"])


# ---------------------------------------------------------------------------
# HTTP provider
# ---------------------------------------------------------------------------

class HTTPProvider(AIProvider):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_format: str = "raw",
        model: str = "gemini-2.0-flash",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if api_format not in API_FORMATS:
            raise ValueError(f"Unknown GEMINI_API_FORMAT: {api_format}")
        self.base_url = base_url
        self.api_key = api_key
        self.api_format = api_format
        self.model = model
        self.sleep = sleep

    def _build_request(self, prompt: str, temperature: float, max_tokens: int) -> Tuple[str, Dict[str, str], Dict[str, str], Dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        params: Dict[str, str] = {}
        if self.api_format == "gemini":
            params["key"] = self.api_key
            payload = {
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
            }
            return self.base_url, headers, params, payload

        headers["Authorization"] = f"Bearer {self.api_key}"
        if self.api_format == "openai":
            payload = {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
            return f"{self.base_url.rstrip('/')}/chat/completions", headers, params, payload

        payload = {"input": prompt, "max_output_tokens": max_tokens, "temperature": temperature}
        return self.base_url, headers, params, payload

    def _extract_text(self, response: httpx.Response) -> str:
        if self.api_format == "raw":
            return response.text
        try:
            data = response.json()
            if self.api_format == "gemini":
                text = data["candidates"][0]["content"]["parts"][0]["text"]
            else:
                text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderMalformed(f"Provider envelope missing generated text: {e}") from e
        if not isinstance(text, str):
            raise ProviderMalformed("Provider returned non-text content")
        return text

    async def _attempt(self, prompt: str, timeout: float, temperature: float, max_tokens: int) -> str:
        url, headers, params, payload = self._build_request(prompt, temperature, max_tokens)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                # wait_for bounds the whole call, not just each socket operation
                response = await asyncio.wait_for(
                    client.post(url, headers=headers, params=params, json=payload),
                    timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ProviderTimeout(f"Provider call exceeded {timeout}s") from e
        except httpx.TransportError as e:
            raise ProviderUnavailable(f"Provider unreachable: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ProviderHTTPError(response.status_code, response.text)
        return self._extract_text(response)

    async def complete(
        self,
        prompt: str,
        *,
        task: str,
        timeout: float,
        retry: RetryPolicy = NO_RETRY,
        temperature: float = 0.0,
        max_tokens: int = 800,
    ) -> str:
        attempts = max(1, retry.max_attempts)
        for attempt in range(attempts):
            logger.info(f"Calling AI provider for {task} (attempt {attempt + 1}/{attempts})")
            try:
                return await self._attempt(prompt, timeout, temperature, max_tokens)
            except ProviderError as e:
                if not e.retryable or attempt == attempts - 1:
                    raise
                wait = retry.delay(attempt)
                logger.warning(f"{task}: provider attempt {attempt + 1} failed ({e}); retrying in {wait}s")
                await self.sleep(wait)
        raise AssertionError("unreachable")


def build_provider(settings) -> AIProvider:
    if settings.dev_mock_gemini:
        return MockProvider("DEV_MOCK_GEMINI=true, using local mock responses")
    if not (settings.gemini_api_url and settings.gemini_api_key):
        return MockProvider("GEMINI_API_URL or GEMINI_API_KEY not set, using local mock responses")
    logger.info(f"Using {settings.gemini_api_format} AI provider at {settings.gemini_api_url}")
    return HTTPProvider(
        settings.gemini_api_url,
        settings.gemini_api_key,
        api_format=settings.gemini_api_format,
        model=settings.gemini_model,
    )
