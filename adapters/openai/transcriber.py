"""
OpenAI Whisper API Transcriber Adapter.
Maps SDK failures onto the pipeline's transient/rejected error split.
"""

import time
from pathlib import Path
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from core.config import get_settings
from core.errors import TranscriptionRejectedError, TransientError
from core.logger import logger
from ports.transcriber import TranscriberPort

TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAITranscriber(TranscriberPort):
    """Adapter for the OpenAI audio transcription endpoint."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        language: Optional[str] = None,
    ):
        settings = get_settings()
        self.model = model or settings.transcription_model
        self.language = language or settings.transcription_language

        if client is None:
            if not settings.openai_api_key:
                logger.warning("OPENAI_API_KEY is not set; transcription calls will fail")
            # Retries are owned by SegmentTranscriber
            client = AsyncOpenAI(
                api_key=settings.openai_api_key or "missing-api-key",
                base_url=settings.openai_base_url,
                max_retries=0,
            )
        self.client = client

        logger.debug(
            f"OpenAITranscriber initialized: model={self.model}, language={self.language or 'auto'}"
        )

    async def transcribe(self, audio_path: str) -> str:
        """
        Send one audio file to the transcription endpoint.

        Args:
            audio_path: Path to the audio file (must be under the hard limit)

        Returns:
            Transcript text

        Raises:
            TransientError: Network, timeout, rate limit or 5xx failure
            TranscriptionRejectedError: Any other API error (bad format, auth, ...)
        """
        start_time = time.time()
        request: Dict[str, Any] = {"model": self.model, "file": Path(audio_path)}
        if self.language:
            request["language"] = self.language

        try:
            logger.debug(f"Sending {audio_path} to {self.model}")
            response = await self.client.audio.transcriptions.create(**request)

        except TRANSIENT_ERRORS as e:
            logger.warning(f"Transient transcription failure for {audio_path}: {e}")
            raise TransientError(str(e)) from e

        except openai.APIStatusError as e:
            logger.error(
                f"Transcription rejected for {audio_path}: status={e.status_code}, {e.message}"
            )
            raise TranscriptionRejectedError(f"HTTP {e.status_code}: {e.message}") from e

        except openai.OpenAIError as e:
            logger.error(f"Transcription request failed for {audio_path}: {e}")
            raise TranscriptionRejectedError(str(e)) from e

        text = response.text or ""
        elapsed_time = time.time() - start_time
        logger.info(
            f"Transcribed {Path(audio_path).name}: {len(text)} chars in {elapsed_time:.2f}s"
        )
        return text
