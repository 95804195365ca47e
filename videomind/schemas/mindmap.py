"""
VideoMind — Mind Map Document Schema
=====================================
Canonical representation of a video's topic decomposition.

    {
      "root_topic": "...",
      "video_url": "...",                      (optional)
      "nodes": [
        {"topic": "...", "summary": [...], "keywords": [...], "timestamp": [0, 30]}
      ],
      "transcription": [{"text": "...", "start": 0, "end": 4.5}]   (optional)
    }

This is the exact shape accepted from upload and from the generator, and the
exact shape written by download.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from videomind.core.errors import RangeError, SchemaError

# Ints stay ints so a download reproduces the uploaded numbers exactly.
Seconds = Union[StrictInt, StrictFloat]

RANGE_ERROR_TYPE = "timestamp_range"


# ── Models ───────────────────────────────────────────────────────────────────

class TranscriptLine(BaseModel):
    """A single time-stamped caption line."""
    model_config = ConfigDict(frozen=True)

    text: str
    start: Seconds
    end: Seconds

    @field_validator("start", "end")
    @classmethod
    def check_finite(cls, v: Seconds) -> Seconds:
        if not math.isfinite(v):
            raise PydanticCustomError(RANGE_ERROR_TYPE, "caption time must be finite")
        return v


class TopicNode(BaseModel):
    """One topic of the video, active while playback is inside its range."""
    model_config = ConfigDict(frozen=True)

    topic: str
    summary: List[str] = []
    keywords: List[str] = []
    timestamp: Tuple[Seconds, Seconds]

    @field_validator("timestamp")
    @classmethod
    def check_range(cls, v: Tuple[Seconds, Seconds]) -> Tuple[Seconds, Seconds]:
        start, end = v
        if not (math.isfinite(start) and math.isfinite(end)):
            raise PydanticCustomError(RANGE_ERROR_TYPE, "timestamp range must be finite")
        if start < 0:
            raise PydanticCustomError(RANGE_ERROR_TYPE, "timestamp range must not start before 0")
        if start >= end:
            raise PydanticCustomError(
                RANGE_ERROR_TYPE,
                "timestamp range is inverted or empty: start {start} >= end {end}",
                {"start": start, "end": end},
            )
        return v

    @property
    def start(self) -> Seconds:
        return self.timestamp[0]

    @property
    def end(self) -> Seconds:
        return self.timestamp[1]


class MindMapDocument(BaseModel):
    """A validated mind map. Node order is the display and resolution order."""
    model_config = ConfigDict(frozen=True)

    root_topic: str
    video_url: Optional[str] = None
    nodes: List[TopicNode]
    transcription: Optional[List[TranscriptLine]] = None


# ── Validation / Serialization ───────────────────────────────────────────────

def _describe(errors: List[Dict[str, Any]]) -> str:
    parts = []
    for err in errors[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "document"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    if len(errors) > 5:
        parts.append(f"... and {len(errors) - 5} more")
    return "; ".join(parts)


def _rejection(exc: ValidationError) -> SchemaError | RangeError:
    """Map a pydantic failure onto RangeError (only bad ranges) or SchemaError."""
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    if errors and all(err["type"] == RANGE_ERROR_TYPE for err in errors):
        return RangeError(f"Invalid timestamp range: {_describe(errors)}", errors)
    return SchemaError(f"Invalid mind map document: {_describe(errors)}", errors)


def validate_document(candidate: Any) -> MindMapDocument:
    """
    Validate a decoded JSON object (dict) as a mind map document.

    Raises SchemaError or RangeError; never returns a partial document.
    """
    if isinstance(candidate, MindMapDocument):
        return candidate
    try:
        return MindMapDocument.model_validate(candidate)
    except ValidationError as e:
        raise _rejection(e) from e


def serialize(document: MindMapDocument) -> bytes:
    """Canonical JSON bytes: 2-space indent, absent optional fields omitted."""
    return document.model_dump_json(indent=2, exclude_none=True).encode("utf-8")


def deserialize(data: Union[bytes, str]) -> MindMapDocument:
    """Parse and validate JSON text produced by serialize() or uploaded by a user."""
    try:
        return MindMapDocument.model_validate_json(data)
    except ValidationError as e:
        raise _rejection(e) from e
