"""
VideoMind — Time Resolver
==========================
Maps a playback position to the active topic node. Every consumer (summary
panel, graph highlight, speech text) goes through resolve_active() so they all
agree on which node is active.
"""

import re
from typing import List, Optional, Tuple

from pydantic import BaseModel

from videomind.schemas.mindmap import MindMapDocument

KEYWORD_PREVIEW_LIMIT = 4

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def resolve_active(document: MindMapDocument, t: float) -> Optional[int]:
    """
    Index of the first node with start <= t < end, or None.

    Ranges may overlap or be unsorted; the earliest-declared node wins.
    """
    for index, node in enumerate(document.nodes):
        if node.start <= t < node.end:
            return index
    return None


def resolve_transcript_line(document: MindMapDocument, t: float) -> Optional[int]:
    """Same half-open, first-match rule over the caption lines."""
    for index, line in enumerate(document.transcription or ()):
        if line.start <= t < line.end:
            return index
    return None


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def format_timestamp(seconds: float) -> str:
    """m:ss, as shown next to the active topic."""
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def keyword_preview(keywords: List[str], limit: int = KEYWORD_PREVIEW_LIMIT) -> Tuple[List[str], int]:
    """First `limit` keywords and how many were left out."""
    return list(keywords[:limit]), max(len(keywords) - limit, 0)


# ── Consumers ────────────────────────────────────────────────────────────────

class SummaryPanel(BaseModel):
    """What the summary panel shows for the current resolver output."""
    active_index: Optional[int] = None
    topic: Optional[str] = None
    time_range: Optional[str] = None  # "m:ss - m:ss"
    bullets: List[str]
    keywords: List[str] = []
    more_keywords: int = 0


def summary_panel(document: MindMapDocument, index: Optional[int]) -> SummaryPanel:
    if index is None:
        return SummaryPanel(bullets=split_sentences(document.root_topic))

    node = document.nodes[index]
    shown, overflow = keyword_preview(node.keywords)
    return SummaryPanel(
        active_index=index,
        topic=node.topic,
        time_range=f"{format_timestamp(node.start)} - {format_timestamp(node.end)}",
        bullets=list(node.summary),
        keywords=shown,
        more_keywords=overflow,
    )


def speech_text(document: MindMapDocument, index: Optional[int]) -> str:
    if index is None:
        return document.root_topic
    return ". ".join(document.nodes[index].summary)


def speech_title(index: Optional[int]) -> str:
    return "Listen to video summary" if index is None else "Listen to current segment summary"
