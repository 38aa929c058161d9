"""
Transcriber Port.
"""

from abc import ABC, abstractmethod


class TranscriberPort(ABC):
    """Abstract interface for the remote speech-to-text service."""

    @abstractmethod
    async def transcribe(self, audio_path: str) -> str:
        """
        Transcribe one audio file.

        Raises:
            TransientError: Retryable failure (network, rate limit, 5xx)
            TranscriptionRejectedError: The service refused the content
        """
        pass
