"""
Per-segment transcription with validation and retry.
Includes detailed logging and comprehensive error handling.
"""

import asyncio
import os
import time
from typing import Optional

from core.config import get_settings
from core.errors import (
    OversizedSegmentError,
    SegmentTranscriptionError,
    TranscriptionRejectedError,
    TransientError,
)
from core.logger import logger
from domain.entities import Segment
from ports.transcriber import TranscriberPort

settings = get_settings()


class SegmentTranscriber:
    """Validates a segment file and sends it to the transcription service."""

    def __init__(
        self,
        transcriber: TranscriberPort,
        hard_limit_bytes: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        self.transcriber = transcriber
        self.hard_limit_bytes = hard_limit_bytes or settings.transcription_limit_bytes
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.backoff_seconds = (
            settings.retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    def validate(self, segment: Segment) -> None:
        """
        Check a segment before it is sent.

        Raises:
            SegmentTranscriptionError: Zero-byte or missing segment file
            OversizedSegmentError: Segment still above the hard limit after repair
        """
        try:
            size_bytes = os.path.getsize(segment.file_path)
        except OSError as e:
            raise SegmentTranscriptionError(f"segment file unreadable ({e})") from e

        if size_bytes == 0:
            raise SegmentTranscriptionError("empty segment file")

        if size_bytes > self.hard_limit_bytes:
            raise OversizedSegmentError(
                f"Segment {segment.label} is {size_bytes} bytes, above the "
                f"{self.hard_limit_bytes} byte limit after repair"
            )

    async def transcribe_segment(self, segment: Segment) -> str:
        """
        Transcribe one segment, retrying transient failures with linear backoff.

        Args:
            segment: Segment to transcribe

        Returns:
            Transcript text of the segment

        Raises:
            SegmentTranscriptionError: Segment is empty, was rejected, or retries ran out
            OversizedSegmentError: Segment exceeds the hard limit
        """
        self.validate(segment)
        return await self.transcribe_with_retry(segment.file_path, label=segment.label)

    async def transcribe_with_retry(self, audio_path: str, label: str = "") -> str:
        """
        Call the transcription service with retry.

        Args:
            audio_path: File to transcribe
            label: Segment label used in log lines

        Returns:
            Transcribed text

        Raises:
            SegmentTranscriptionError: If the call is rejected or all attempts fail
        """
        attempts = self.max_retries + 1
        tag = f"[segment {label}] " if label else ""
        last_exception: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            start_time = time.time()
            try:
                logger.debug(f"{tag}Transcription attempt {attempt}/{attempts}")
                text = await self.transcriber.transcribe(audio_path)
                logger.info(
                    f"{tag}Transcribed on attempt {attempt} in {time.time() - start_time:.2f}s"
                )
                return text

            except TransientError as e:
                last_exception = e
                logger.warning(f"{tag}Transient failure on attempt {attempt}/{attempts}: {e}")
                if attempt < attempts:
                    delay = attempt * self.backoff_seconds
                    logger.info(f"{tag}Retrying in {delay:.1f}s...")
                    await asyncio.sleep(delay)

            except TranscriptionRejectedError as e:
                logger.error(f"{tag}Rejected by transcription service: {e}")
                raise SegmentTranscriptionError(str(e)) from e

        error_msg = f"all {attempts} attempts failed: {last_exception}"
        logger.error(f"{tag}{error_msg}")
        raise SegmentTranscriptionError(error_msg) from last_exception
