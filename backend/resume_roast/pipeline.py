"""
Generic generation pipeline shared by every endpoint.

A Task bundles what differs between endpoints (schemas, prompt, retry and
quota policy, sampling parameters); `run_task` executes the common steps:
prompt -> provider -> extract JSON -> parse -> validate.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel

from . import prompts
from .ai_services import NO_RETRY, AIProvider, ProviderError, RetryPolicy
from .errors import ClientInputInvalid, RateLimited, UpstreamMalformed, UpstreamUnavailable
from .extract import parse_model_json
from .rate_limiter import DEFAULT_RATE_LIMIT, FIX_RATE_LIMIT, RateLimitOptions, client_key
from .schemas import (
    ATSAnalysis,
    AnalyzeResumeRequest,
    FixRequest,
    GenerateContentRequest,
    GeneratedContent,
    GeneratePreviewRequest,
    ParseCVRequest,
    ParsedCV,
    ResumeAnalysisResult,
    RoastRequest,
    RoastResponse,
)
from .validation import validate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Task:
    name: str
    input_model: Optional[Type[BaseModel]]
    build_prompt: Callable[..., str]
    output_model: Optional[Type[BaseModel]] = None  # None: plain text output
    retry: RetryPolicy = NO_RETRY
    rate_limit: RateLimitOptions = DEFAULT_RATE_LIMIT
    temperature: float = 0.0
    max_tokens: int = 800


ROAST_TASK = Task("roast", RoastRequest, prompts.build_roast_prompt, RoastResponse)

FIX_TASK = Task(
    "fix", FixRequest, prompts.build_fix_prompt,
    retry=RetryPolicy(max_attempts=3, base_delay=2.0, backoff="linear"),
    rate_limit=FIX_RATE_LIMIT, temperature=0.6, max_tokens=4096,
)
FIX_COVER_LETTER_TASK = Task(
    "fix_cover_letter", None, prompts.build_fix_cover_letter_prompt,
    retry=FIX_TASK.retry, rate_limit=FIX_RATE_LIMIT, temperature=0.7, max_tokens=1024,
)
FIX_ATS_TASK = Task(
    "fix_ats", None, prompts.build_ats_analysis_prompt, ATSAnalysis,
    retry=FIX_TASK.retry, rate_limit=FIX_RATE_LIMIT, temperature=0.3, max_tokens=1024,
)

CONTENT_TASK = Task(
    "generate_content", GenerateContentRequest, prompts.build_content_prompt, GeneratedContent,
    temperature=0.7, max_tokens=4000,
)

PREVIEW_TASK = Task(
    "generate_preview", GeneratePreviewRequest, prompts.build_preview_prompt,
    retry=RetryPolicy(max_attempts=3, base_delay=1.0), temperature=0.3, max_tokens=4096,
)
PREVIEW_COVER_LETTER_TASK = Task(
    "preview_cover_letter", None, prompts.build_preview_cover_letter_prompt,
    retry=PREVIEW_TASK.retry, temperature=0.4, max_tokens=2048,
)

PARSE_CV_TASK = Task(
    "parse_cv", ParseCVRequest, prompts.build_parse_cv_prompt, ParsedCV,
    retry=RetryPolicy(max_attempts=3, base_delay=1.0), temperature=0.1, max_tokens=4096,
)

ANALYZE_TASK = Task(
    "analyze_resume", AnalyzeResumeRequest, prompts.build_analyze_prompt, ResumeAnalysisResult,
    retry=RetryPolicy(max_attempts=3, base_delay=2.0, backoff="linear"), temperature=0.3, max_tokens=2048,
)


def verdict_for_score(score: float) -> str:
    if score >= 70:
        return "Apply"
    if score >= 40:
        return "Don't Apply"
    return "High Risk"


def finalize_roast(result: RoastResponse) -> RoastResponse:
    """Make the verdict agree with the score."""
    expected = verdict_for_score(result.score)
    if result.verdict != expected:
        if result.verdict is not None:
            logger.info(f"Model verdict {result.verdict!r} contradicts score {result.score}, using {expected!r}")
        result.verdict = expected
    return result


async def enforce_rate_limit(request: Request, task: Task) -> int:
    """Take one token for the caller; raises RateLimited when the bucket is empty.

    The remaining count is stashed on request.state so error responses can
    carry the quota header too.
    """
    client = client_key(request.headers)
    result = await request.app.state.rate_limiter.hit_async(f"{task.name}:{client}", task.rate_limit)
    request.state.rate_limit_remaining = result.remaining
    if not result.ok:
        logger.warning(f"Rate limit exceeded for {client} on {task.name}")
        raise RateLimited()
    return result.remaining


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Request body is not valid JSON: {e}")
        raise ClientInputInvalid(details=["body: Request body must be valid JSON"])


def parse_request(model: Type[M], raw: Any) -> M:
    if not isinstance(raw, dict):
        raise ClientInputInvalid(details=["body: Expected a JSON object"])
    result = validate(model, raw)
    if not result.ok:
        logger.info(f"Rejected {model.__name__}: {result.errors}")
        raise ClientInputInvalid(details=result.errors)
    return result.data


def parse_output(task: Task, text: str) -> BaseModel:
    try:
        raw = parse_model_json(text)
    except ValueError:
        logger.error(f"{task.name}: could not parse AI response as JSON: {text[:500]!r}")
        raise UpstreamMalformed()
    result = validate(task.output_model, raw)
    if not result.ok:
        logger.error(f"{task.name}: AI response failed validation: {result.errors}")
        raise UpstreamMalformed("AI response validation failed", details=result.errors)
    return result.data


async def run_task(provider: AIProvider, task: Task, *prompt_args: Any, timeout: float = 20.0) -> Any:
    """Run one generation step. Returns the validated output model, or text for plain tasks."""
    prompt = task.build_prompt(*prompt_args)
    try:
        text = await provider.complete(
            prompt,
            task=task.name,
            timeout=timeout,
            retry=task.retry,
            temperature=task.temperature,
            max_tokens=task.max_tokens,
        )
    except ProviderError as e:
        logger.error(f"{task.name}: AI provider call failed: {e}")
        raise UpstreamUnavailable()

    if task.output_model is None:
        if not text.strip():
            logger.error(f"{task.name}: AI provider returned empty text")
            raise UpstreamMalformed()
        return text.strip()
    return parse_output(task, text)


async def generate(request: Request, task: Task, *prompt_args: Any) -> Any:
    """run_task with the app's provider and configured deadline."""
    settings = request.app.state.settings
    return await run_task(
        request.app.state.provider, task, *prompt_args, timeout=settings.gemini_timeout_ms / 1000
    )
