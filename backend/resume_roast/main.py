import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .ai_services import build_provider
from .api.routes_generate import router as generate_router
from .api.routes_parse import router as parse_router
from .api.routes_roast import router as roast_router
from .config import Settings
from .db import init_db, make_engine, make_session_factory
from .errors import RoastAPIError
from .rate_limiter import build_rate_limiter

logger = logging.getLogger(__name__)

RATE_LIMIT_HEADER = "X-RateLimit-Remaining"


def _quota_headers(request: Request) -> dict:
    remaining = getattr(request.state, "rate_limit_remaining", None)
    return {RATE_LIMIT_HEADER: str(remaining)} if remaining is not None else {}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Resume Roast API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[RATE_LIMIT_HEADER],
    )

    engine = make_engine(settings.database_url)
    init_db(engine)
    session_factory = make_session_factory(engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.rate_limiter = build_rate_limiter(settings, session_factory)
    app.state.provider = build_provider(settings)

    @app.exception_handler(RoastAPIError)
    async def roast_error_handler(request: Request, exc: RoastAPIError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=_quota_headers(request))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.get("/_health")
    def health():
        return {"ok": True}

    app.include_router(roast_router)
    app.include_router(generate_router)
    app.include_router(parse_router)

    mode = "mock" if settings.mock_mode else settings.gemini_api_format
    logger.info(f"Resume Roast API ready (provider={mode}, rate_limit={settings.rate_limit_backend})")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
