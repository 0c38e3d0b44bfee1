"""
On-disk storage for uploaded voice recordings.

Files live flat in RECORDING_UPLOAD_DIR under generated names
(audio_<unix-ms>_<random>.<ext>); the original client filename is only used
for its extension.
"""
import logging
import os
import secrets
import time
import wave
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from core.async_utils import run_blocking
from core.config import settings
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}

_CHUNK_SIZE = 1024 * 1024


def upload_dir() -> Path:
    path = Path(settings.recording.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def file_extension(filename: Optional[str]) -> str:
    """
    Lower-cased extension of an uploaded filename.

    Raises:
        ValidationError: Missing or not one of the allowed extensions
    """
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    allowed = [e.lower() for e in settings.recording.allowed_extensions]
    if ext not in allowed:
        raise ValidationError(f"Invalid file type. Allowed: {', '.join(allowed)}")
    return ext


def generate_file_name(ext: str) -> str:
    return f"audio_{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"


def playback_url(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    return f"{settings.recording.playback_prefix.rstrip('/')}/{file_name}"


def _write_file(path: Path, content: bytes) -> None:
    with open(path, "wb") as fh:
        fh.write(content)


def _wav_duration(path: Path) -> Optional[int]:
    try:
        with wave.open(str(path), "rb") as wav:
            rate = wav.getframerate()
            if not rate:
                return None
            return int(round(wav.getnframes() / float(rate)))
    except (wave.Error, EOFError) as e:
        logger.warning(f"Could not read WAV header of {path.name}: {e}")
        return None


async def read_upload(upload: UploadFile) -> bytes:
    """
    Read an upload into memory, refusing anything over the size limit.

    Raises:
        ValidationError: File larger than RECORDING_MAX_UPLOAD_SIZE
    """
    limit = settings.recording.max_upload_size
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise ValidationError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB")
        chunks.append(chunk)
    if size == 0:
        raise ValidationError("Uploaded file is empty")
    return b"".join(chunks)


async def save_recording_file(content: bytes, ext: str) -> str:
    """Write the file under a generated name and return that name."""
    file_name = generate_file_name(ext)
    await run_blocking(_write_file, upload_dir() / file_name, content)
    logger.info(f"Stored recording {file_name} ({len(content)} bytes)")
    return file_name


async def wav_duration_seconds(file_name: str) -> Optional[int]:
    """Duration from the WAV header, or None if it cannot be read."""
    return await run_blocking(_wav_duration, upload_dir() / file_name)


def remove_file(file_name: str) -> None:
    try:
        (upload_dir() / file_name).unlink()
    except FileNotFoundError:
        pass


def resolve_audio_path(file_name: str) -> Optional[Path]:
    """
    Path of a stored recording, or None when it does not exist or the name
    would escape the upload directory.
    """
    base = upload_dir().resolve()
    candidate = (base / file_name).resolve()
    if candidate.parent != base or not candidate.is_file():
        return None
    if candidate.suffix.lstrip(".").lower() not in MEDIA_TYPES:
        return None
    return candidate
