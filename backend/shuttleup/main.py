import logging
import os

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .config import API_PREFIX
from .exceptions import DomainException, ProblemDetail
from .routers import auth, matches, tournaments
from .utils.sentry import init_sentry

logger = logging.getLogger(__name__)


def _allowed_origins() -> list[str]:
    origins = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    # Fail fast: credentials + wildcard origins is unsafe
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    return origins


ALLOWED_ORIGINS = _allowed_origins()
ALLOW_CREDENTIALS = os.getenv("ALLOW_CREDENTIALS", "true").lower() == "true"


def _problem(problem: ProblemDetail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(),
        media_type="application/problem+json",
        headers=headers,
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Domain error %s: %s", exc.code, exc.detail)
    else:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.code)
    return _problem(
        ProblemDetail(
            type=exc.type,
            title=exc.title,
            detail=exc.detail,
            status=exc.status_code,
            code=exc.code,
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem(
        ProblemDetail(
            title=detail,
            detail=detail,
            status=exc.status_code,
            code=getattr(exc, "code", f"http_{exc.status_code}"),
        ),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _problem(
        ProblemDetail(
            title="Internal Server Error",
            detail=str(exc),
            status=500,
            code="internal_server_error",
        )
    )


def _api_router() -> APIRouter:
    api_router = APIRouter(prefix=API_PREFIX)

    @api_router.get("/healthz", tags=["health"])
    def api_healthz():
        return {"status": "ok"}

    @api_router.get("", tags=["meta"])
    def api_root():
        return {"message": "ShuttleUp Tournament API. See /docs."}

    v0_router = APIRouter(prefix="/v0")
    v0_router.include_router(matches.router)
    v0_router.include_router(tournaments.router, tags=["tournaments"])
    api_router.include_router(v0_router)
    return api_router


def create_app() -> FastAPI:
    application = FastAPI(
        title="ShuttleUp Tournament API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    application.state.limiter = auth.limiter
    application.add_exception_handler(RateLimitExceeded, auth.rate_limit_handler)
    application.add_exception_handler(DomainException, domain_exception_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    if ALLOWED_ORIGINS:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.info("ALLOWED_ORIGINS not set; CORS middleware disabled.")

    # Unprefixed for reverse proxy / uptime checks
    @application.get("/healthz", tags=["health"])
    def root_healthz():
        return {"status": "ok"}

    application.include_router(_api_router())
    logger.info("API mounted at %s/v0", API_PREFIX)
    return application


init_sentry()
app = create_app()
