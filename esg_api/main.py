from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from esg_api import __version__
from esg_api.core.config import settings
from esg_api.core.database import async_session_factory, engine
from esg_api.core.errors import global_exception_handler, http_exception_handler
from esg_api.core.sentry import init_sentry

import esg_api.models  # noqa: F401 register all models at startup

from esg_api.auth.router import router as auth_router
from esg_api.modules.audit.router import router as audit_router
from esg_api.modules.audit.trail import AuditTrail
from esg_api.modules.esg.router import router as esg_router
from esg_api.modules.reporting.router import router as reporting_router
from esg_api.modules.users.router import router as users_router

# ── Sentry: must be initialised BEFORE the FastAPI app is created ─────────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    logger.info("starting_esg_api", env=settings.APP_ENV)
    yield
    await app.state.audit_trail.drain()
    await engine.dispose()
    logger.info("esg_api_stopped")


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="ESG Disclosures API",
    description="Role-gated ESG record tracking, approval workflow and scored periodic reports.",
    version=__version__,
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)
app.state.audit_trail = AuditTrail(async_session_factory)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, global_exception_handler)


# ── X-API-Version response header ────────────────────────────────────────────


@app.middleware("http")
async def add_version_header(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-API-Version"] = "v1"
    return response


# ── Health check (root-level, not under /v1) ─────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Probe the database and report service status."""
    try:
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        database = {"status": "healthy"}
    except Exception as exc:  # noqa: BLE001
        logger.warning("health_check_database_failed", error=str(exc))
        database = {"status": "unhealthy", "error": str(exc)}

    overall = "healthy" if database["status"] == "healthy" else "degraded"
    return {"status": overall, "version": __version__, "checks": {"database": database}}


# ── Versioned API ────────────────────────────────────────────────────────────

api_v1 = APIRouter(prefix="/v1")
api_v1.include_router(auth_router)
api_v1.include_router(users_router)
api_v1.include_router(esg_router)
api_v1.include_router(reporting_router)
api_v1.include_router(audit_router)

app.include_router(api_v1)
