"""
Common API schemas shared across different endpoints.
"""

from pydantic import BaseModel
from typing import Dict, Optional, Any


class StandardResponse(BaseModel):
    """
    Standard API response format for all endpoints.

    - error_code: 0 = success, 1 = error
    - message: Success or error message
    - data: Response data (optional, only present on success)
    """

    error_code: int = 0
    message: str
    data: Optional[Any] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "error_code": 0,
                    "message": "Success",
                    "data": {"transcription": "Hello world", "saved_as": "2024-05-01T10-15-00-000000_hello.txt"},
                },
                {"error_code": 1, "message": "Transcription not found", "data": None},
            ]
        }


class HealthResponse(BaseModel):
    """Response model for health check (internal use)."""

    status: str
    service: str
    version: str
    ffmpeg: bool
    ffprobe: bool
    api_key_configured: bool

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "status": "healthy",
                    "service": "Chunked Transcribe",
                    "version": "1.0.0",
                    "ffmpeg": True,
                    "ffprobe": True,
                    "api_key_configured": True,
                }
            ]
        }
