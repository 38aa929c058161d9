"""
Saved Transcription API Routes.
"""

from fastapi import APIRouter, HTTPException, status

from core.logger import logger
from internal.api.schemas.common_schemas import StandardResponse
from internal.api.schemas.transcription_schemas import (
    TranscriptionContent,
    TranscriptionEntry,
)
from internal.api.utils import success_response
from services.transcript_store import get_transcript_store

router = APIRouter(prefix="/api/transcriptions", tags=["Transcriptions"])


@router.get(
    "",
    response_model=StandardResponse,
    summary="List Transcriptions",
    description="List saved transcripts, newest first",
)
async def list_transcriptions():
    """
    List saved transcripts.

    **Returns:**
    - filename, creation time and size of every saved transcript
    """
    try:
        entries = [
            TranscriptionEntry(**entry).model_dump(mode="json")
            for entry in get_transcript_store().list()
        ]
    except OSError as e:
        logger.error(f"❌ Failed to list transcriptions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list transcriptions",
        )
    return success_response(message="Success", data=entries)


@router.get(
    "/{filename}",
    response_model=StandardResponse,
    summary="Get Transcription",
    description="Get the content of a saved transcript",
    responses={404: {"description": "Transcription not found"}},
)
async def get_transcription(filename: str):
    content = get_transcript_store().read(filename)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transcription not found")

    data = TranscriptionContent(filename=filename, content=content)
    return success_response(message="Success", data=data.model_dump())
