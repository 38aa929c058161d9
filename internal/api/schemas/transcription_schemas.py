"""
Schemas for transcription results and saved transcripts.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TranscriptionResult(BaseModel):
    """Result of a single-request transcription."""

    transcription: str = Field(..., description="Transcript text")
    saved_as: Optional[str] = Field(None, description="Saved transcript filename")
    duration: float = Field(..., description="Processing time in seconds")

    class Config:
        json_schema_extra = {
            "example": {
                "transcription": "Welcome to the weekly planning meeting.",
                "saved_as": "2024-05-01T10-15-00-000000_meeting.txt",
                "duration": 4.2,
            }
        }


class TranscriptionEntry(BaseModel):
    filename: str
    created: datetime
    size: int


class TranscriptionContent(BaseModel):
    filename: str
    content: str
