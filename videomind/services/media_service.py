import logging
import tempfile
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Union

from videomind.core.config import settings

logger = logging.getLogger(__name__)

MEDIA_ROUTE = "/media"
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".ogv", ".mov", ".m4v", ".mkv")


def validate_video(content: bytes, filename: str) -> None:
    """
    Uploaded video checks:
    1. Known video extension
    2. Not empty
    3. Within MAX_VIDEO_SIZE_MB
    """
    if not filename:
        raise ValueError("No video filename provided.")

    if not filename.lower().endswith(VIDEO_EXTENSIONS):
        raise ValueError(
            f"Unsupported video format '{filename.rsplit('.', 1)[-1]}'. "
            f"Use one of: {', '.join(VIDEO_EXTENSIONS)}"
        )

    if len(content) == 0:
        raise ValueError("Uploaded video is empty.")

    max_bytes = settings.MAX_VIDEO_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValueError(
            f"Video too large ({len(content) / (1024*1024):.1f} MB). "
            f"Maximum is {settings.MAX_VIDEO_SIZE_MB} MB."
        )


class MediaStore:
    """
    Transient media files served under /media/<name>.

    A handle is the URL path of the file. It stays servable until release()
    is called; the lifecycle manager releases it when its document is
    superseded.
    """

    def __init__(self, root: Union[str, Path, None] = None):
        self._root = Path(root) if root else Path(tempfile.mkdtemp(prefix="videomind-media-"))
        self._root.mkdir(parents=True, exist_ok=True)
        self._live: Dict[str, Path] = {}

    @property
    def live_handles(self) -> List[str]:
        return list(self._live)

    def acquire(self, content: bytes, filename: str) -> str:
        validate_video(content, filename)
        name = f"{uuid.uuid4().hex}{Path(filename).suffix.lower()}"
        path = self._root / name
        path.write_bytes(content)

        handle = f"{MEDIA_ROUTE}/{name}"
        self._live[handle] = path
        logger.info(f"[MEDIA] ✓ Acquired {handle} ({len(content) / (1024*1024):.1f} MB from '{filename}')")
        return handle

    def release(self, handle: str) -> None:
        path = self._live.pop(handle, None)
        if path is None:
            logger.warning(f"[MEDIA] Release of unknown handle {handle} ignored")
            return
        path.unlink(missing_ok=True)
        logger.info(f"[MEDIA] Released {handle}")

    def path_for(self, name: str) -> Optional[Path]:
        return self._live.get(f"{MEDIA_ROUTE}/{name}")

    def close(self) -> None:
        for handle in list(self._live):
            self.release(handle)
