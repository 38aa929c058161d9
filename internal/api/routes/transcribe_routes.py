"""
Transcription upload route.
"""

import asyncio
import time
import uuid
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from core.config import get_settings
from core.errors import InvalidAudioFormatError, SegmentTranscriptionError
from core.logger import logger
from internal.api.schemas.transcription_schemas import TranscriptionResult
from internal.api.utils import success_response
from services.transcription import TranscribeService

router = APIRouter(tags=["Transcription"])
# Initialize service once (singleton-like)
transcribe_service = TranscribeService()

UPLOAD_CHUNK_SIZE = 1024 * 1024


async def _save_upload(upload: UploadFile, destination: Path, max_bytes: int) -> int:
    """
    Write the upload to disk in chunks, stopping as soon as it exceeds `max_bytes`.
    File operations run in the default executor.
    """
    loop = asyncio.get_running_loop()
    written = 0
    f = await loop.run_in_executor(None, open, destination, "wb")
    try:
        while True:
            chunk = await upload.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise ValueError("File too large")
            await loop.run_in_executor(None, f.write, chunk)
    finally:
        await loop.run_in_executor(None, f.close)
    return written


def _remove_upload(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


@router.post(
    "/transcribe",
    status_code=status.HTTP_200_OK,
    summary="Transcribe Audio",
    description="Upload an audio file and transcribe it",
    responses={
        200: {
            "description": "Transcript as JSON, or a stream of progress events for large files",
        },
        400: {"description": "Missing file or unsupported format"},
        413: {"description": "File above the upload limit"},
        500: {"description": "Internal server error"},
    },
)
async def transcribe(audio: UploadFile = File(..., description="Audio file to transcribe")):
    """
    Transcribe an uploaded audio file.

    Files within the transcription service limit are answered with a single JSON
    response. Larger files are split into segments and the response is a stream
    of JSON progress events ending with `status=complete` or `status=error`.

    **Supported formats:**
    MP3, WAV, M4A, OGG, FLAC
    """
    start_time = time.time()
    settings = get_settings()

    if not audio.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    try:
        extension = TranscribeService.validate_format(audio.filename)
    except InvalidAudioFormatError as e:
        logger.error(f"❌ Unsupported format: {audio.filename}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    upload_path = upload_dir / f"{uuid.uuid4()}{extension}"

    try:
        size_bytes = await _save_upload(audio, upload_path, settings.max_upload_size_bytes)
    except ValueError:
        _remove_upload(upload_path)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )
    except OSError as e:
        _remove_upload(upload_path)
        logger.error(f"❌ Failed to store upload {audio.filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    logger.info(f"API: Received {audio.filename} ({size_bytes / (1024 * 1024):.2f}MB)")

    if transcribe_service.requires_segmentation(size_bytes):
        logger.info(f"API: {audio.filename} is above the single-request limit, streaming progress")
        return StreamingResponse(
            transcribe_service.stream_large_file(str(upload_path), audio.filename, size_bytes),
            media_type="application/json",
        )

    try:
        result = await transcribe_service.transcribe_file(str(upload_path), audio.filename)
        elapsed_time = time.time() - start_time
        logger.info(f"API: Transcription successful, time={elapsed_time:.2f}s")
        return success_response(
            data=TranscriptionResult(**result).model_dump(), message="Transcription successful"
        )
    except SegmentTranscriptionError as e:
        logger.error(f"❌ Transcription failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    except Exception as e:
        logger.error(f"Transcription error: {e}")
        logger.exception("Transcription error details:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
