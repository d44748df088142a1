import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..db import get_db, save
from ..models import ResumeAnalysis
from ..pipeline import ANALYZE_TASK, PARSE_CV_TASK, enforce_rate_limit, generate, parse_request, read_json_body
from ..schemas import (
    AnalyzeResumeRequest,
    AnalyzeResumeResponse,
    ParseCVRequest,
    ParseCVResponse,
    ResumeAnalysisOut,
    to_master_cv,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["parse"])


@router.post("/parse-cv", response_model=ParseCVResponse)
async def parse_cv(request: Request, response: Response):
    response.headers["X-RateLimit-Remaining"] = str(await enforce_rate_limit(request, PARSE_CV_TASK))
    body = parse_request(ParseCVRequest, await read_json_body(request))

    parsed = await generate(request, PARSE_CV_TASK, body)
    logger.info(f"Parsed CV {body.filename or '<pasted>'}: {len(parsed.experience)} roles")
    return ParseCVResponse(data=to_master_cv(parsed, body.filename))


@router.post("/analyze-resume", response_model=AnalyzeResumeResponse)
async def analyze_resume(request: Request, response: Response, db: Session = Depends(get_db)):
    response.headers["X-RateLimit-Remaining"] = str(await enforce_rate_limit(request, ANALYZE_TASK))
    body = parse_request(AnalyzeResumeRequest, await read_json_body(request))

    result = await generate(request, ANALYZE_TASK, body)

    row = ResumeAnalysis(
        session_id=body.session_id,
        file_name=body.file_name,
        file_size=body.file_size,
        ats_score=result.ats_score,
        overall_feedback=result.overall_feedback,
        sections=[s.model_dump() for s in result.sections],
    )
    row = await run_in_threadpool(save, db, row)

    return AnalyzeResumeResponse(analysis=ResumeAnalysisOut(
        id=row.id,
        session_id=row.session_id,
        file_name=row.file_name,
        file_size=row.file_size,
        **result.model_dump(),
    ))
