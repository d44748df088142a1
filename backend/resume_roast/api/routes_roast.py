from fastapi import APIRouter, Request, Response

from ..pipeline import ROAST_TASK, enforce_rate_limit, finalize_roast, generate, parse_request, read_json_body
from ..schemas import RoastRequest, RoastResponse

router = APIRouter(prefix="/api", tags=["roast"])


@router.post("/roast", response_model=RoastResponse)
async def roast_resume(request: Request, response: Response):
    remaining = await enforce_rate_limit(request, ROAST_TASK)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    # Body is read by hand so malformed JSON maps to our 400 shape
    body = parse_request(RoastRequest, await read_json_body(request))
    result = await generate(request, ROAST_TASK, body)
    return finalize_roast(result)
