"""
VideoMind — Video / Mind Map Sync Service
==========================================
FastAPI entry point.
  • Global exception handler — never crashes, always returns JSON
  • One viewing session: active mind map + playback sync + click-to-seek
  • Upload / AI generation / reset of the active mind map
  • Transient uploaded videos served under /media
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from videomind.core.config import settings
from videomind.schemas.api import ErrorResponse
from videomind.services.session import VideoMindSession
from videomind.api.v1.endpoints import media, mindmap

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("[SHUTDOWN] Releasing transient media")
    app.state.session.close()


# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="VideoMind — Video Mind Map Sync",
    description=(
        "Keeps a video and its topic mind map in sync.\n"
        "Report playback time → get the active topic; click a topic → seek the video."
    ),
    version="1.0.0",
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

app.state.session = VideoMindSession()


# ── Global Exception Handler ────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    body = ErrorResponse(
        status="error",
        message="An internal server error occurred.",
        detail=str(exc),
    )
    return JSONResponse(status_code=500, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters get the same envelope as every other error."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning(f"Rejected request on {request.url.path}: {problems}")
    body = ErrorResponse(status="error", message="Invalid request.", detail=problems)
    return JSONResponse(status_code=422, content=body.model_dump())


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Health Check ─────────────────────────────────────────────────────────────
@app.get("/", tags=["System"])
async def health_check():
    lifecycle = app.state.session.lifecycle
    return {
        "status": "operational",
        "service": "VideoMind Sync",
        "version": app.version,
        "mindmap_source": lifecycle.source.value,
        "nodes": len(lifecycle.document.nodes),
    }


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(mindmap.router, prefix="/api/v1", tags=["Mind Map"])
app.include_router(media.router, tags=["Media"])
