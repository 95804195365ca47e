"""
VideoMind — API Schemas
========================
Request bodies and response envelopes of the /api/v1 surface.
Errors always come back as ErrorResponse.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from videomind.data.builtin import DatasetTier
from videomind.schemas.mindmap import MindMapDocument
from videomind.services.lifecycle import DocumentSource
from videomind.services.resolver import SummaryPanel


# ── Requests ─────────────────────────────────────────────────────────────────

class TimeUpdateRequest(BaseModel):
    """Playback position reported by the video player."""
    time: float = Field(..., ge=0, allow_inf_nan=False, description="Current playback time in seconds")


class DatasetRequest(BaseModel):
    tier: DatasetTier


class ResetRequest(BaseModel):
    tier: Optional[DatasetTier] = None


# ── Responses ────────────────────────────────────────────────────────────────

class MindMapState(BaseModel):
    """The active document and where it came from."""
    source: DocumentSource
    tier: DatasetTier
    video_url: str
    active_index: Optional[int] = None
    generation_pending: bool = False
    document: MindMapDocument


class TimeUpdateResponse(BaseModel):
    time: float
    active_index: Optional[int] = None
    changed: bool


class SeekResponse(BaseModel):
    index: int
    seek_to: float


class PanelResponse(BaseModel):
    """Summary panel, speech button and subtitle line for the current time."""
    time: float
    panel: SummaryPanel
    speech_text: str
    speech_title: str
    transcript_index: Optional[int] = None
    transcript_text: Optional[str] = None


class GenerationResponse(BaseModel):
    status: str = "success"  # "success" | "discarded"
    ticket: int
    state: Optional[MindMapState] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    status: str = "error"
    message: str
    detail: Optional[str] = None
