"""
Resume generation endpoints: rewrite an existing resume, generate tailored
content from scratch, and preview a resume built from a parsed master CV.
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..db import get_db, save
from ..errors import RoastAPIError, UpstreamMalformed
from ..models import GeneratedResume
from ..pipeline import (
    CONTENT_TASK,
    FIX_ATS_TASK,
    FIX_COVER_LETTER_TASK,
    FIX_TASK,
    PREVIEW_COVER_LETTER_TASK,
    PREVIEW_TASK,
    enforce_rate_limit,
    generate,
    parse_request,
    read_json_body,
)
from ..schemas import (
    ATSAnalysis,
    ContactInfo,
    FixRequest,
    FixResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GeneratedResumeOut,
    GeneratePreviewRequest,
    GeneratePreviewResponse,
    PreviewOut,
)
from ..tailor import keyword_ats_score, resolve_contact

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

DEFAULT_ATS_ANALYSIS = ATSAnalysis(ats_score=85, keyword_match_percent=80, matched_keywords=[], improvements_made=[])


@router.post("/fix", response_model=FixResponse)
async def fix_resume(request: Request, response: Response):
    response.headers["X-RateLimit-Remaining"] = str(await enforce_rate_limit(request, FIX_TASK))
    body = parse_request(FixRequest, await read_json_body(request))

    fixed = await generate(request, FIX_TASK, body)

    cover_letter = None
    if body.include_cover_letter:
        cover_letter = await generate(request, FIX_COVER_LETTER_TASK, fixed, body.job_description)

    try:
        ats = await generate(request, FIX_ATS_TASK, fixed, body.job_description)
    except UpstreamMalformed as e:
        logger.warning(f"ATS analysis unusable ({e.message}), falling back to defaults")
        ats = DEFAULT_ATS_ANALYSIS

    return FixResponse(fixed_resume=fixed, cover_letter=cover_letter, ats_analysis=ats)


@router.post("/generate-content", response_model=GenerateContentResponse)
async def generate_content(request: Request, response: Response, db: Session = Depends(get_db)):
    response.headers["X-RateLimit-Remaining"] = str(await enforce_rate_limit(request, CONTENT_TASK))
    body = parse_request(GenerateContentRequest, await read_json_body(request))

    contact = resolve_contact(body.contact_info, body.original_resume)
    content = await generate(request, CONTENT_TASK, body, contact)

    # Prefer what the caller gave us; the model only fills gaps
    extracted = content.contact_extracted or ContactInfo()
    contact = ContactInfo(**{
        k: v or getattr(extracted, k) for k, v in contact.model_dump().items()
    })
    cover_letter = content.cover_letter if body.include_cover_letter else None
    ats_score = keyword_ats_score(body.job_description, content.resume)

    row = GeneratedResume(
        session_id=body.session_id,
        job_description=body.job_description,
        generated_content=content.resume,
        cover_letter=cover_letter,
        template=body.template,
        contact_info=contact.model_dump(),
        ats_optimization_score=ats_score,
    )
    row = await run_in_threadpool(save, db, row)
    logger.info(f"Stored generated resume {row.id} (template={row.template})")

    return GenerateContentResponse(resume=GeneratedResumeOut(
        id=row.id,
        content=row.generated_content,
        cover_letter=row.cover_letter,
        contact_info=contact,
        template=row.template,
        ats_score=row.ats_optimization_score,
    ))


@router.post("/generate-preview", response_model=GeneratePreviewResponse)
async def generate_preview(request: Request, response: Response):
    response.headers["X-RateLimit-Remaining"] = str(await enforce_rate_limit(request, PREVIEW_TASK))
    body = parse_request(GeneratePreviewRequest, await read_json_body(request))

    content = await generate(request, PREVIEW_TASK, body)

    cover_letter = None
    if body.include_cover_letter:
        try:
            cover_letter = await generate(request, PREVIEW_COVER_LETTER_TASK, body)
        except RoastAPIError as e:
            logger.warning(f"Cover letter generation failed, returning preview without it: {e.message}")

    return GeneratePreviewResponse(resume=PreviewOut(
        content=content,
        cover_letter=cover_letter,
        ats_score=keyword_ats_score(body.job_description, content),
        template=body.template,
    ))
