import json
import asyncio
import logging
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import TypeAdapter, ValidationError

from videomind.core.config import settings
from videomind.core.errors import DocumentValidationError, ResourceError, StaleResultError
from videomind.schemas.api import (
    DatasetRequest,
    ErrorResponse,
    GenerationResponse,
    MindMapState,
    PanelResponse,
    ResetRequest,
    SeekResponse,
    TimeUpdateRequest,
    TimeUpdateResponse,
)
from videomind.schemas.mindmap import TranscriptLine
from videomind.services import generation_service
from videomind.services.layout import GraphLayout
from videomind.services.resolver import (
    resolve_active,
    resolve_transcript_line,
    speech_text,
    speech_title,
    summary_panel,
)
from videomind.services.session import VideoMindSession

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEPALIVE_SECONDS = 15

_transcript_adapter = TypeAdapter(List[TranscriptLine])


def get_session(request: Request) -> VideoMindSession:
    return request.app.state.session


# ── Helpers ──────────────────────────────────────────────────────────────────

def _error(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(status="error", message=message, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _state(session: VideoMindSession) -> MindMapState:
    lifecycle = session.lifecycle
    return MindMapState(
        source=lifecycle.source,
        tier=lifecycle.tier,
        video_url=lifecycle.video_url,
        active_index=session.controller.active_index,
        generation_pending=lifecycle.pending_ticket is not None,
        document=lifecycle.document,
    )


def _validate_json_upload(content: bytes, filename: str) -> None:
    if not filename.lower().endswith(".json"):
        raise ValueError(f"Only JSON mind map files are accepted. Got: '{filename}'")

    if len(content) == 0:
        raise ValueError("Uploaded mind map file is empty.")

    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValueError(
            f"Mind map file too large ({len(content) / (1024*1024):.1f} MB). "
            f"Maximum is {settings.MAX_UPLOAD_SIZE_MB} MB."
        )


def _parse_transcription(raw: str) -> List[TranscriptLine]:
    try:
        lines = _transcript_adapter.validate_json(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid transcription: {e.errors(include_url=False)[0]['msg']}")
    if not lines:
        raise ValueError("Transcription is empty.")
    return lines


async def _store_video(session: VideoMindSession, video: Optional[UploadFile]) -> Optional[str]:
    """Acquire a media handle for an optional uploaded video. Raises ValueError."""
    if video is None or not video.filename:
        return None
    content = await video.read()
    return await asyncio.to_thread(session.media.acquire, content, video.filename)


async def _run_generation(lines: List[TranscriptLine], video_url: Optional[str]) -> dict:
    try:
        return await asyncio.wait_for(
            generation_service.generate_mind_map(lines, video_url),
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        raise ResourceError(f"AI processing timed out after {settings.AI_TIMEOUT_SECONDS}s.")


def _release_unadopted(session: VideoMindSession, handle: Optional[str]) -> None:
    """Free a video the lifecycle manager did not adopt (and has not freed already)."""
    if handle is None or handle == session.lifecycle.media_handle:
        return
    if handle in session.media.live_handles:
        session.media.release(handle)


def _abandon(session: VideoMindSession, ticket: int) -> None:
    """The client went away mid-generation: close its request."""
    if session.lifecycle.cancel_generation(ticket) is not None:
        logger.info(f"[GENERATE] Request #{ticket} abandoned by client")


async def _sse_wrapper(generator):
    """Wraps an async generator into SSE format."""
    try:
        async for chunk in generator:
            yield f"data: {chunk}\n\n"
        yield "data: [DONE]\n\n"
    except Exception as e:
        logger.error(f"SSE stream error: {e}")
        yield f"data: {json.dumps({'type': 'error', 'message': str(e)})}\n\n"
        yield "data: [DONE]\n\n"
    finally:
        await generator.aclose()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. ACTIVE DOCUMENT + PLAYBACK SYNC
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/mindmap", response_model=MindMapState)
async def get_mindmap(session: VideoMindSession = Depends(get_session)):
    """The active mind map, its source and the video to play."""
    return _state(session)


@router.get("/mindmap/layout", response_model=GraphLayout)
async def get_layout(session: VideoMindSession = Depends(get_session)):
    """Node positions of the active mind map (stable across time updates)."""
    return session.controller.layout


@router.post("/mindmap/time", response_model=TimeUpdateResponse)
async def update_time(request: TimeUpdateRequest, session: VideoMindSession = Depends(get_session)):
    """Playback position from the video player; highlights the active topic."""
    previous = session.controller.active_index
    index = session.controller.on_time_update(request.time)
    return TimeUpdateResponse(time=request.time, active_index=index, changed=index != previous)


@router.get("/mindmap/panel", response_model=PanelResponse)
async def get_panel(
    t: Optional[float] = Query(default=None, ge=0, description="Defaults to the last reported time"),
    session: VideoMindSession = Depends(get_session),
):
    """Summary panel, speech text and subtitle line for a playback position."""
    document = session.lifecycle.document
    if t is None:
        t = session.controller.current_time
        index = session.controller.active_index
    else:
        index = resolve_active(document, t)

    line_index = resolve_transcript_line(document, t)
    return PanelResponse(
        time=t,
        panel=summary_panel(document, index),
        speech_text=speech_text(document, index),
        speech_title=speech_title(index),
        transcript_index=line_index,
        transcript_text=document.transcription[line_index].text if line_index is not None else None,
    )


@router.post("/mindmap/nodes/{index}/activate", response_model=SeekResponse)
async def activate_node(index: int, session: VideoMindSession = Depends(get_session)):
    """Clicking a topic node: asks the video player to seek to its start."""
    try:
        seek_to = session.controller.on_node_activate(index)
    except IndexError as e:
        return _error(404, str(e))
    return SeekResponse(index=index, seek_to=seek_to)


@router.get("/mindmap/download")
async def download_mindmap(session: VideoMindSession = Depends(get_session)):
    """The active mind map as a JSON attachment."""
    artifact = session.controller.on_download_requested()
    return Response(
        content=artifact.payload,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/mindmap/events")
async def stream_events(request: Request, session: VideoMindSession = Depends(get_session)):
    """Server-Sent Events: document, highlight and seek notifications."""
    queue = session.events.subscribe()

    async def _events() -> AsyncGenerator[str, None]:
        try:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(event)}\n\n"
        finally:
            session.events.unsubscribe(queue)

    return StreamingResponse(_events(), media_type="text/event-stream", headers=SSE_HEADERS)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. DOCUMENT REPLACEMENT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/mindmap/upload", response_model=MindMapState)
async def upload_mindmap(
    file: UploadFile = File(...),
    video: Optional[UploadFile] = File(None),
    session: VideoMindSession = Depends(get_session),
):
    """Upload a mind map JSON file, optionally with the video it describes."""
    content = await file.read()
    filename = file.filename or "unknown.json"

    try:
        _validate_json_upload(content, filename)
        handle = await _store_video(session, video)
    except ValueError as e:
        return _error(400, str(e))

    try:
        session.lifecycle.upload(content, handle)
    except DocumentValidationError as e:
        return _error(422, "Mind map rejected.", str(e))

    return _state(session)


@router.post("/mindmap/dataset", response_model=MindMapState)
async def select_dataset(request: DatasetRequest, session: VideoMindSession = Depends(get_session)):
    """Switch to a built-in mind map (small / medium / large)."""
    session.lifecycle.select_tier(request.tier)
    return _state(session)


@router.post("/mindmap/reset", response_model=MindMapState)
async def reset_mindmap(
    request: Optional[ResetRequest] = None,
    session: VideoMindSession = Depends(get_session),
):
    """Back to the built-in mind map; drops uploaded media and open generation requests."""
    session.lifecycle.reset(request.tier if request else None)
    return _state(session)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. AI GENERATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/mindmap/generate", response_model=GenerationResponse)
async def generate_mindmap(
    transcription: str = Form(..., description="JSON list of {text, start, end}"),
    video_url: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    session: VideoMindSession = Depends(get_session),
):
    """Generate a mind map from a transcript and make it active."""
    try:
        lines = _parse_transcription(transcription)
        handle = await _store_video(session, video)
    except ValueError as e:
        return _error(400, str(e))

    ticket = session.lifecycle.begin_generation()
    try:
        try:
            candidate = await _run_generation(lines, video_url)
        except ResourceError as e:
            logger.error(f"[GENERATE] ✗ Request #{ticket} failed: {e}")
            return _error(502, "AI generation failed.", str(e))
        except asyncio.CancelledError:
            _abandon(session, ticket)
            raise

        try:
            session.lifecycle.complete_generation(ticket, candidate, handle)
        except StaleResultError:
            logger.info(f"[GENERATE] Request #{ticket} superseded, result discarded")
            return GenerationResponse(status="discarded", ticket=ticket)
        except DocumentValidationError as e:
            return _error(422, "Generated mind map rejected.", str(e))

        return GenerationResponse(ticket=ticket, state=_state(session))
    finally:
        _release_unadopted(session, handle)


@router.post("/mindmap/generate/stream")
async def generate_mindmap_stream(
    transcription: str = Form(..., description="JSON list of {text, start, end}"),
    video_url: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    session: VideoMindSession = Depends(get_session),
):
    """Same as /mindmap/generate, with progress as Server-Sent Events."""
    try:
        lines = _parse_transcription(transcription)
        handle = await _store_video(session, video)
    except ValueError as e:
        return _error(400, str(e))

    ticket = session.lifecycle.begin_generation()

    async def _progress() -> AsyncGenerator[str, None]:
        settled = False
        try:
            yield json.dumps({"type": "status", "message": "Reading transcript...", "progress": 10})
            yield json.dumps({"type": "status", "message": "Finding topics in the video...", "progress": 30})
            try:
                candidate = await _run_generation(lines, video_url)
            except ResourceError as e:
                settled = True
                yield json.dumps({"type": "error", "message": str(e)})
                return

            yield json.dumps({"type": "status", "message": "Validating mind map...", "progress": 90})
            try:
                session.lifecycle.complete_generation(ticket, candidate, handle)
            except StaleResultError:
                yield json.dumps({"type": "discarded", "ticket": ticket})
                return
            except DocumentValidationError as e:
                settled = True
                yield json.dumps({"type": "error", "message": str(e)})
                return

            yield json.dumps({"type": "status", "message": "Done ✓", "progress": 100})
            yield json.dumps({"type": "result", "ticket": ticket, "data": _state(session).model_dump(mode="json")})
        finally:
            # A failed request stays open for a retry; an abandoned one does not.
            if not settled:
                _abandon(session, ticket)
            _release_unadopted(session, handle)

    return StreamingResponse(_sse_wrapper(_progress()), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/mindmap/generate/cancel")
async def cancel_generation(session: VideoMindSession = Depends(get_session)):
    """The generation dialog was closed; a late result will be discarded."""
    ticket = session.lifecycle.cancel_generation()
    return {"status": "cancelled" if ticket is not None else "idle", "ticket": ticket}
