"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import v1_router
from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import (
    AlreadyClaimed,
    CageTrackError,
    InvalidArgument,
    NotFound,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    yield


app = FastAPI(
    title="CageTrack",
    version="0.1.0",
    description="Laboratory cage records with claimable QR labels",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Domain error mapping ─────────────────────────────────────
_STATUS_BY_ERROR: dict[type[CageTrackError], int] = {
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    AlreadyClaimed: status.HTTP_409_CONFLICT,
    ValidationFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


@app.exception_handler(CageTrackError)
async def domain_error_handler(request: Request, exc: CageTrackError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, AlreadyClaimed) and exc.orphaned_resource_id:
        logger.warning(
            "Claim of %s left orphaned cage %s (%s %s)",
            exc.qr_id, exc.orphaned_resource_id, request.method, request.url.path,
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
