"""
Bounded-concurrency transcription of segments discovered while splitting runs.
"""

import asyncio
import time
from typing import Dict, List, Optional, Set

from core.config import get_settings
from core.constants import JobPhase
from core.errors import OversizedSegmentError, SegmentDiscoveryError, SegmentTranscriptionError
from core.logger import logger, format_exception_short
from domain.entities import Job, JobState, Segment, SegmentIndex, SegmentResult
from worker.progress import ProgressReporter
from worker.segmenter import Segmenter
from worker.transcriber import SegmentTranscriber

settings = get_settings()


class TranscriptionWorkerPool:
    """
    Per-job pool: one discovery task feeding a queue drained by up to
    `max_concurrent` workers.

    Discovery polls the segment directory until both the split and the repair
    have finished, then performs a final scan and closes the queue.
    """

    def __init__(
        self,
        job: Job,
        segmenter: Segmenter,
        transcriber: SegmentTranscriber,
        reporter: ProgressReporter,
        max_concurrent: Optional[int] = None,
        poll_interval: Optional[float] = None,
        hard_limit_bytes: Optional[int] = None,
    ):
        self.job = job
        self.segmenter = segmenter
        self.transcriber = transcriber
        self.reporter = reporter
        self.max_concurrent = max_concurrent or settings.max_concurrent_segments
        self.poll_interval = (
            settings.discovery_interval_seconds if poll_interval is None else poll_interval
        )
        self.hard_limit_bytes = hard_limit_bytes or settings.transcription_limit_bytes

        self.state = JobState()
        self.results: Dict[SegmentIndex, SegmentResult] = {}
        self._seen: Set[str] = set()
        self._queue: "asyncio.Queue[Optional[Segment]]" = asyncio.Queue()
        self._discovery_task: Optional[asyncio.Task] = None
        self._fatal_error: Optional[BaseException] = None
        self._wakeup = asyncio.Event()

    def mark_split_finished(self) -> None:
        self.state.split_finished = True
        self._wakeup.set()

    def mark_repair_finished(self) -> None:
        self.state.repair_finished = True
        self._wakeup.set()

    async def run(self) -> Dict[SegmentIndex, SegmentResult]:
        """
        Run discovery and workers until every discovered segment has a result.

        Returns:
            Results keyed by segment index (empty if the pool was aborted)

        Raises:
            OversizedSegmentError: A segment above the hard limit reached a worker
            SegmentDiscoveryError: Listing the segment directory failed
        """
        if self.state.failed:
            logger.warning(f"[{self.job.session_id}] Worker pool aborted before start")
            return {}

        start_time = time.time()
        logger.info(
            f"[{self.job.session_id}] Worker pool started (workers={self.max_concurrent})"
        )

        self._discovery_task = asyncio.create_task(self._discover())
        workers = [
            asyncio.create_task(self._worker(worker_id))
            for worker_id in range(self.max_concurrent)
        ]

        discovery_outcome = (
            await asyncio.gather(self._discovery_task, return_exceptions=True)
        )[0]
        await asyncio.gather(*workers)

        if self._fatal_error is not None:
            raise self._fatal_error

        if self.state.failed:
            logger.warning(f"[{self.job.session_id}] Worker pool aborted, results discarded")
            return {}

        if isinstance(discovery_outcome, Exception):
            logger.error(format_exception_short(discovery_outcome, f"[{self.job.session_id}] Segment discovery failed"))
            raise SegmentDiscoveryError(f"Segment discovery failed: {discovery_outcome}") from discovery_outcome

        if self.state.phase is not JobPhase.COMPLETE:
            raise SegmentDiscoveryError(
                f"Worker pool stopped in phase {self.state.phase.value} "
                f"({self.state.processed}/{self.state.discovered} segments)"
            )

        logger.info(
            f"[{self.job.session_id}] Worker pool {self.state.phase.value}: "
            f"{self.state.processed}/{self.state.discovered} segments in {time.time() - start_time:.2f}s"
        )
        return dict(self.results)

    async def abort(self) -> None:
        """Stop discovery and discard queued work. In-flight calls finish; their results are dropped."""
        if self.state.failed:
            return
        self.state.failed = True
        self._wakeup.set()
        logger.warning(f"[{self.job.session_id}] Aborting worker pool")
        if self._discovery_task is not None and not self._discovery_task.done():
            self._discovery_task.cancel()
            await asyncio.gather(self._discovery_task, return_exceptions=True)

    async def _discover(self) -> None:
        try:
            while not (self.state.split_finished and self.state.repair_finished):
                if self.state.failed:
                    return
                self._scan(final=False)
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass

            if self.state.failed:
                return
            self._scan(final=True)
            self.state.discovery_finished = True
            logger.info(
                f"[{self.job.session_id}] Discovery finished: {self.state.discovered} segments"
            )
        finally:
            for _ in range(self.max_concurrent):
                self._queue.put_nowait(None)

    def _scan(self, final: bool) -> List[Segment]:
        """
        Enqueue segments not seen before.

        Before the final scan the newest file may still be written by ffmpeg and
        oversized files are left for the repair step.
        """
        segments = self.segmenter.list_segments(self.job)
        if not final and not self.state.split_finished:
            segments = segments[:-1]

        new_segments = []
        for segment in segments:
            if segment.file_name in self._seen:
                continue
            if not final and segment.size_bytes > self.hard_limit_bytes:
                continue
            self._seen.add(segment.file_name)
            new_segments.append(segment)
            self._queue.put_nowait(segment)

        if new_segments:
            self.state.discovered += len(new_segments)
            logger.info(
                f"[{self.job.session_id}] Discovered {len(new_segments)} new segments "
                f"{[s.label for s in new_segments]} (total {self.state.discovered})"
            )
            self.reporter.segment_progress(self.state.processed, self.state.discovered)
        return new_segments

    async def _worker(self, worker_id: int) -> None:
        while True:
            segment = await self._queue.get()
            if segment is None:
                return
            if self.state.failed:
                continue

            try:
                text = await self.transcriber.transcribe_segment(segment)
                result = SegmentResult(index=segment.index, text=text)
            except SegmentTranscriptionError as e:
                logger.error(f"[{self.job.session_id}] Segment {segment.label} failed: {e}")
                result = SegmentResult.placeholder(segment.index, str(e))
            except OversizedSegmentError as e:
                logger.error(format_exception_short(e, f"[{self.job.session_id}] Repair left an oversized segment"))
                self._fatal_error = e
                await self.abort()
                continue
            except Exception as e:
                logger.error(format_exception_short(e, f"[{self.job.session_id}] Segment {segment.label} crashed"))
                logger.exception("Segment transcription error details:")
                result = SegmentResult.placeholder(segment.index, str(e) or type(e).__name__)

            if self.state.failed:
                logger.debug(
                    f"[{self.job.session_id}] Worker {worker_id} discarding result of segment {segment.label}"
                )
                continue

            self.results[segment.index] = result
            self.state.processed += 1
            logger.debug(
                f"[{self.job.session_id}] Worker {worker_id} recorded segment {segment.label} "
                f"({self.state.processed}/{self.state.discovered})"
            )
            self.reporter.segment_progress(self.state.processed, self.state.discovered)
