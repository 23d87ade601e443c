# File: voicecrm/api/routes/audio.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from voicecrm.core.config.settings import settings
from voicecrm.features.audio_capture.domain.models import AudioClip
from ..auth import require_user
from ..schemas import serialize_pipeline_result, serialize_transcript

router = APIRouter(prefix="/audio", tags=["audio"])
logger = logging.getLogger(__name__)

ALLOWED_AUDIO_TYPES = {
    "audio/webm",
    "audio/wav",
    "audio/x-wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/x-m4a",
    "audio/aac",
    "audio/ogg",
    "audio/flac",
    "audio/aiff",
    "audio/x-aiff",
}


async def _read_clip(audio: UploadFile) -> AudioClip:
    mime_type = (audio.content_type or "").split(";")[0].strip().lower()
    if mime_type not in ALLOWED_AUDIO_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported audio type '{audio.content_type}'",
        )

    data = await audio.read()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Audio file exceeds {settings.MAX_UPLOAD_BYTES} bytes",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audio file is empty")

    return AudioClip.from_upload(data, mime_type)


@router.post("/upload")
async def upload_audio(request: Request,
                       audio: UploadFile = File(...),
                       user_id: str = Depends(require_user)) -> Dict[str, Any]:
    """Transcribes one recording. Backend failures come back as a fallback transcript, not an error."""
    clip = await _read_clip(audio)
    logger.info(f"Upload from {user_id}: {audio.filename} ({clip.mime_type}, {clip.size_bytes} bytes)")

    transcript = await request.app.state.gateway.transcribe(clip)
    return {"success": True, "data": serialize_transcript(transcript)}


@router.post("/draft")
async def draft_from_audio(request: Request,
                           audio: UploadFile = File(...),
                           user_id: str = Depends(require_user)) -> Dict[str, Any]:
    """Runs the whole voice pipeline and returns a pre-filled activity form with its suggestions."""
    clip = await _read_clip(audio)
    logger.info(f"Draft request from {user_id}: {audio.filename} ({clip.size_bytes} bytes)")

    result = await request.app.state.pipeline.process_clip(clip)
    return {"success": True, "data": serialize_pipeline_result(result)}
