"""
VideoMind — Interaction Controller
===================================
Binds time updates, node activation and download on top of the resolver and
the layout engine. Its only side effects are the three sinks it was given:
seek requests, highlight notifications and file saves. It never mutates the
document and never swaps it (that is the lifecycle manager's job).
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from videomind.schemas.mindmap import MindMapDocument, serialize
from videomind.services.layout import GraphLayout, LayoutCache
from videomind.services.lifecycle import DocumentLifecycleManager
from videomind.services.resolver import resolve_active

logger = logging.getLogger(__name__)

HighlightListener = Callable[[Optional[int]], None]


@dataclass(frozen=True)
class DownloadArtifact:
    filename: str
    payload: bytes
    media_type: str = "application/json"


def download_filename(root_topic: str) -> str:
    """'Intro & Outro' -> 'intro___outro_mindmap.json'"""
    return f"{re.sub(r'[^a-z0-9]', '_', root_topic, flags=re.IGNORECASE).lower()}_mindmap.json"


class InteractionController:
    def __init__(
        self,
        lifecycle: DocumentLifecycleManager,
        seek: Callable[[float], None],
        save_file: Optional[Callable[[DownloadArtifact], None]] = None,
    ):
        self._lifecycle = lifecycle
        self._seek = seek
        self._save_file = save_file
        self._highlight_listeners: List[HighlightListener] = []
        self._layouts = LayoutCache()
        self._current_time = 0.0

        self._layouts.get(lifecycle.document)
        self._active_index = resolve_active(lifecycle.document, self._current_time)
        lifecycle.subscribe(self._on_document_swapped)

    @property
    def active_index(self) -> Optional[int]:
        return self._active_index

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def layout(self) -> GraphLayout:
        return self._layouts.get(self._lifecycle.document)

    def add_highlight_listener(self, listener: HighlightListener) -> None:
        self._highlight_listeners.append(listener)

    # ── Events ───────────────────────────────────────────────────────────────

    def on_time_update(self, t: float) -> Optional[int]:
        """Resolve the active node; notify only when it changed."""
        self._current_time = t
        index = resolve_active(self._lifecycle.document, t)
        if index != self._active_index:
            self._active_index = index
            self._notify(index)
        return index

    def on_node_activate(self, index: int) -> float:
        """Ask the video collaborator to seek to the node's start."""
        nodes = self._lifecycle.document.nodes
        if not 0 <= index < len(nodes):
            raise IndexError(f"No topic node at index {index} (document has {len(nodes)})")
        start = nodes[index].start
        logger.info(f"[CONTROLLER] Seek requested: node {index} → {start}s")
        self._seek(start)
        return start

    def on_download_requested(self) -> DownloadArtifact:
        document = self._lifecycle.document
        artifact = DownloadArtifact(
            filename=download_filename(document.root_topic),
            payload=serialize(document),
        )
        if self._save_file is not None:
            self._save_file(artifact)
        return artifact

    # ── Internals ────────────────────────────────────────────────────────────

    def _on_document_swapped(self, document: MindMapDocument) -> None:
        # layout, then resolve, then notify
        self._layouts.get(document)
        self._active_index = resolve_active(document, self._current_time)
        self._notify(self._active_index)

    def _notify(self, index: Optional[int]) -> None:
        for listener in list(self._highlight_listeners):
            listener(index)
