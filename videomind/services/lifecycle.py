"""
VideoMind — Document Lifecycle Manager
=======================================
Sole owner of the active mind map and of the one live transient media handle
(an uploaded or generated video). Every swap goes through _commit():

  1. release the previous media handle (unless the new document reuses it)
  2. swap document, source and handle together
  3. notify listeners synchronously

Rejected candidates never touch the active state.

States:
  default(tier) ── upload ──────────▶ uploaded
  any           ── generation ──────▶ generated
  any           ── reset / tier ────▶ default(tier)
"""

import itertools
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from videomind.core.config import settings
from videomind.core.errors import DocumentValidationError, StaleResultError
from videomind.data.builtin import DatasetTier, builtin_document
from videomind.schemas.mindmap import MindMapDocument, deserialize, validate_document

logger = logging.getLogger(__name__)

Listener = Callable[[MindMapDocument], None]


class DocumentSource(str, Enum):
    default = "default"
    uploaded = "uploaded"
    generated = "generated"


class DocumentLifecycleManager:
    def __init__(
        self,
        release_media: Callable[[str], None],
        tier: Union[DatasetTier, str, None] = None,
    ):
        self._release_media = release_media
        self._tier = DatasetTier(tier or settings.DEFAULT_DATASET_TIER)
        self._source = DocumentSource.default
        self._document = builtin_document(self._tier)
        self._media_handle: Optional[str] = None
        self._listeners: List[Listener] = []
        self._tickets = itertools.count(1)
        self._pending_ticket: Optional[int] = None

    # ── Read access ──────────────────────────────────────────────────────────

    @property
    def document(self) -> MindMapDocument:
        return self._document

    @property
    def source(self) -> DocumentSource:
        return self._source

    @property
    def tier(self) -> DatasetTier:
        return self._tier

    @property
    def media_handle(self) -> Optional[str]:
        return self._media_handle

    @property
    def pending_ticket(self) -> Optional[int]:
        return self._pending_ticket

    @property
    def video_url(self) -> str:
        """Uploaded video first, then the document's own URL, then the sample video."""
        return self._media_handle or self._document.video_url or settings.DEFAULT_VIDEO_URL

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a swap listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Transitions ──────────────────────────────────────────────────────────

    def select_tier(self, tier: Union[DatasetTier, str]) -> MindMapDocument:
        tier = DatasetTier(tier)
        if self._source is DocumentSource.default and tier is self._tier:
            return self._document
        self.cancel_generation()
        self._tier = tier
        logger.info(f"[LIFECYCLE] Built-in dataset selected: {tier.value}")
        return self._commit(builtin_document(tier), DocumentSource.default, None)

    def reset(self, tier: Union[DatasetTier, str, None] = None) -> MindMapDocument:
        self.cancel_generation()
        if tier is not None:
            self._tier = DatasetTier(tier)
        logger.info(f"[LIFECYCLE] Reset to built-in dataset: {self._tier.value}")
        return self._commit(builtin_document(self._tier), DocumentSource.default, None)

    def upload(self, candidate: Any, media_handle: Optional[str] = None) -> MindMapDocument:
        """
        Adopt an uploaded mind map (decoded dict, or raw JSON bytes / text).
        Closes any open generation request and puts the dataset selector back
        on the default tier.
        """
        document = self._adopt(candidate, media_handle)
        self.cancel_generation()
        self._tier = DatasetTier(settings.DEFAULT_DATASET_TIER)
        logger.info(f"[LIFECYCLE] ✓ Uploaded mind map adopted ({len(document.nodes)} nodes)")
        return self._commit(document, DocumentSource.uploaded, media_handle)

    def begin_generation(self) -> int:
        """Open a generation request; only its ticket may commit a result."""
        self._pending_ticket = next(self._tickets)
        logger.info(f"[LIFECYCLE] Generation request #{self._pending_ticket} started")
        return self._pending_ticket

    def cancel_generation(self, ticket: Optional[int] = None) -> Optional[int]:
        """Close the open request, or only request `ticket` when given."""
        if ticket is not None and ticket != self._pending_ticket:
            return None
        ticket, self._pending_ticket = self._pending_ticket, None
        if ticket is not None:
            logger.info(f"[LIFECYCLE] Generation request #{ticket} cancelled")
        return ticket

    def complete_generation(
        self,
        ticket: int,
        candidate: Any,
        media_handle: Optional[str] = None,
    ) -> MindMapDocument:
        """
        Commit a generation result if `ticket` is still the open request.

        Raises StaleResultError when it is not; a rejected result leaves the
        request open so the user can retry.
        """
        if ticket != self._pending_ticket:
            self._discard(media_handle)
            raise StaleResultError(ticket)

        document = self._adopt(candidate, media_handle)
        self._pending_ticket = None
        logger.info(f"[LIFECYCLE] ✓ Generated mind map adopted ({len(document.nodes)} nodes)")
        return self._commit(document, DocumentSource.generated, media_handle)

    # ── Internals ────────────────────────────────────────────────────────────

    def _adopt(self, candidate: Any, media_handle: Optional[str]) -> MindMapDocument:
        try:
            if isinstance(candidate, (bytes, bytearray, str)):
                return deserialize(candidate)
            return validate_document(candidate)
        except DocumentValidationError as e:
            logger.warning(f"[LIFECYCLE] ✗ Candidate rejected: {e}")
            self._discard(media_handle)
            raise

    def _discard(self, media_handle: Optional[str]) -> None:
        """Release a handle that was handed over but never adopted."""
        if media_handle is not None and media_handle != self._media_handle:
            self._release_media(media_handle)

    def _commit(
        self,
        document: MindMapDocument,
        source: DocumentSource,
        media_handle: Optional[str],
    ) -> MindMapDocument:
        previous = self._media_handle
        if previous is not None and previous != media_handle:
            self._release_media(previous)

        self._document = document
        self._source = source
        self._media_handle = media_handle

        for listener in list(self._listeners):
            listener(document)
        return document
