"""
Service layer implementing business logic.
Follows Service Layer Pattern and Single Responsibility Principle.
"""

from .transcription import TranscribeService

__all__ = [
    "TranscribeService",
]
