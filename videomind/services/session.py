"""
VideoMind — Viewing Session
============================
Wires one media store, one lifecycle manager and one interaction controller
together, and fans their notifications out to SSE subscribers:

  document   — a new mind map became active
  highlight  — the active node changed
  seek       — the video collaborator should jump to `time`
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

from videomind.core.config import settings
from videomind.data.builtin import DatasetTier
from videomind.schemas.mindmap import MindMapDocument
from videomind.services.controller import InteractionController
from videomind.services.lifecycle import DocumentLifecycleManager
from videomind.services.media_service import MediaStore

logger = logging.getLogger(__name__)


class EventHub:
    """In-process pub/sub; each subscriber gets its own bounded queue."""

    def __init__(self, max_queue: int = 100):
        self._max_queue = max_queue
        self._queues: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        self._queues.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)

    def publish(self, event: Dict[str, Any]) -> None:
        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"[EVENTS] Subscriber queue full, dropped '{event.get('type')}' event")


class VideoMindSession:
    def __init__(
        self,
        media_root: Union[str, Path, None] = None,
        tier: Union[DatasetTier, str, None] = None,
    ):
        self.media = MediaStore(media_root or settings.MEDIA_DIR)
        self.events = EventHub()
        self.lifecycle = DocumentLifecycleManager(self.media.release, tier)
        # clients hear about the new document before its highlight
        self.lifecycle.subscribe(self._publish_document)
        self.controller = InteractionController(self.lifecycle, seek=self._publish_seek)
        self.controller.add_highlight_listener(self._publish_highlight)

    def close(self) -> None:
        """Drop back to the built-in mind map, then delete whatever media is left."""
        if self.lifecycle.media_handle is not None or self.lifecycle.pending_ticket is not None:
            self.lifecycle.reset()
        self.media.close()

    def _publish_document(self, document: MindMapDocument) -> None:
        self.events.publish({
            "type": "document",
            "source": self.lifecycle.source.value,
            "nodes": len(document.nodes),
            "video_url": self.lifecycle.video_url,
        })

    def _publish_highlight(self, index: Optional[int]) -> None:
        self.events.publish({
            "type": "highlight",
            "active_index": index,
            "time": self.controller.current_time,
        })

    def _publish_seek(self, seconds: float) -> None:
        self.events.publish({"type": "seek", "time": seconds})
