"""
Progress reporting for one job.
Events are appended to a queue consumed by the streaming response.
"""

import asyncio
import math
from typing import AsyncIterator, List, Optional

from core.constants import (
    PROGRESS_COMPLETE,
    PROGRESS_SEGMENTS_DONE,
    PROGRESS_SPLIT,
    ProgressStatus,
)
from core.logger import logger
from domain.entities import ProgressEvent


class ProgressReporter:
    """Emits ordered progress events whose percentage never decreases."""

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        self.events: List[ProgressEvent] = []
        self._queue: "asyncio.Queue[ProgressEvent]" = asyncio.Queue()
        self._last_progress = 0
        self._finished = False

    @property
    def last_progress(self) -> int:
        return self._last_progress

    @property
    def finished(self) -> bool:
        return self._finished

    def emit(
        self,
        message: str,
        progress: int,
        status: ProgressStatus = ProgressStatus.PROCESSING,
        transcription: Optional[str] = None,
        saved_as: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[ProgressEvent]:
        """
        Append an event to the stream.

        Progress below the last emitted value is raised to it. Events after the
        terminal one are dropped.
        """
        if self._finished:
            logger.debug(f"[{self.session_id}] Dropping event after terminal status: {message}")
            return None

        progress = max(self._last_progress, min(PROGRESS_COMPLETE, int(progress)))
        self._last_progress = progress

        event = ProgressEvent(
            status=status,
            message=message,
            progress=progress,
            transcription=transcription,
            saved_as=saved_as,
            error=error,
        )
        self.events.append(event)
        self._queue.put_nowait(event)
        self._finished = event.is_terminal
        logger.debug(f"[{self.session_id}] Progress {progress}%: {message}")
        return event

    def segment_progress(self, processed: int, discovered: int) -> Optional[ProgressEvent]:
        """Interpolate 20%..90% over the segments discovered so far."""
        if discovered <= 0:
            return None
        span = PROGRESS_SEGMENTS_DONE - PROGRESS_SPLIT
        progress = PROGRESS_SPLIT + math.floor(span * min(processed, discovered) / discovered)
        return self.emit(f"Completed {processed} of {discovered} segments...", progress)

    def complete(self, transcription: str, saved_as: Optional[str] = None) -> Optional[ProgressEvent]:
        return self.emit(
            "Transcription complete",
            PROGRESS_COMPLETE,
            status=ProgressStatus.COMPLETE,
            transcription=transcription,
            saved_as=saved_as,
        )

    def fail(self, reason: str) -> Optional[ProgressEvent]:
        return self.emit(
            f"Transcription failed: {reason}",
            PROGRESS_COMPLETE,
            status=ProgressStatus.ERROR,
            error=reason,
        )

    async def stream(self) -> AsyncIterator[ProgressEvent]:
        """Yield events in emission order until the terminal event."""
        while True:
            event = await self._queue.get()
            yield event
            if event.is_terminal:
                return
