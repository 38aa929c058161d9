"""
API Schemas (Request/Response Models).
"""

from .common_schemas import (
    StandardResponse,
    HealthResponse,
)
from .transcription_schemas import (
    TranscriptionResult,
    TranscriptionEntry,
    TranscriptionContent,
)

__all__ = [
    # Common schemas
    "StandardResponse",
    "HealthResponse",
    # Transcription schemas
    "TranscriptionResult",
    "TranscriptionEntry",
    "TranscriptionContent",
]
