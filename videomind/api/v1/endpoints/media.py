from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, JSONResponse

from videomind.api.v1.endpoints.mindmap import get_session
from videomind.schemas.api import ErrorResponse
from videomind.services.session import VideoMindSession

router = APIRouter()


@router.get("/media/{name}")
async def get_media(name: str, session: VideoMindSession = Depends(get_session)):
    """Serve an uploaded video while its mind map is active."""
    path = session.media.path_for(name)
    if path is None or not path.exists():
        body = ErrorResponse(status="error", message=f"Media '{name}' is not available.")
        return JSONResponse(status_code=404, content=body.model_dump())
    return FileResponse(path)
