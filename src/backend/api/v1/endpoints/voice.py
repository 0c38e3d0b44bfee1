"""
Device voice upload and audio playback.

- POST /voice/upload (device traffic, no authentication)
- GET /audio/{filename} (no authentication; names are unguessable)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.recording import VoiceUploadData, VoiceUploadResponse
from api.services import recording_storage
from api.services.recording_service import RecordingService, parse_timestamp
from core.database import get_session
from core.exceptions import DomainError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/voice/upload", response_model=VoiceUploadResponse, status_code=201)
async def upload_voice(
    mp3: Optional[UploadFile] = File(None),
    ip_address: Optional[str] = Form(None),
    start_time: Optional[str] = Form(None),
    end_time: Optional[str] = Form(None),
    cnic: Optional[str] = Form(None),
    mac_address: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_session),
):
    """
    Upload a finished recording.

    - **mp3**: Audio file (.mp3 or .wav, max 50MB)
    - **ip_address**, **cnic**: Device IP and customer CNIC
    - **start_time**, **end_time**: ISO 8601 timestamps
    - **mac_address**: Optional device MAC
    """
    required = {
        "mp3": mp3,
        "ip_address": ip_address,
        "start_time": start_time,
        "end_time": end_time,
        "cnic": cnic,
    }
    missing = [
        name for name, value in required.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

    try:
        ext = recording_storage.file_extension(mp3.filename)
        content = await recording_storage.read_upload(mp3)
        recording = await RecordingService.store_upload(
            db,
            content=content,
            ext=ext,
            ip_address=ip_address,
            start_time=parse_timestamp(start_time, "start_time"),
            end_time=parse_timestamp(end_time, "end_time"),
            cnic=cnic,
            mac_address=mac_address,
        )
    except DomainError as e:
        raise e.to_http()
    finally:
        await mp3.close()

    logger.info(f"Voice upload {recording.file_name} from {recording.ip_address}")
    return VoiceUploadResponse(
        data=VoiceUploadData(
            id=recording.id,
            file_name=recording.file_name,
            playback_url=recording_storage.playback_url(recording.file_name),
            duration_seconds=recording.duration_seconds,
        )
    )


@router.get("/audio/{filename}")
async def get_audio(filename: str):
    """Stream a stored recording."""
    path = recording_storage.resolve_audio_path(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Audio file not found")
    media_type = recording_storage.MEDIA_TYPES[path.suffix.lstrip(".").lower()]
    return FileResponse(path, media_type=media_type, filename=path.name)
