"""
Main processor orchestrating the segmented transcription pipeline.
Includes extensive logging and comprehensive error handling.
"""

import asyncio
import time
from typing import Optional

from core.config import get_settings
from core.constants import (
    PROGRESS_ASSEMBLING,
    PROGRESS_PLANNED,
    PROGRESS_PROBED,
    PROGRESS_SPLIT,
)
from core.errors import PermanentError
from core.logger import logger, format_exception_short
from domain.entities import Job
from ports.transcriber import TranscriberPort
from worker.merger import ResultAssembler
from worker.planner import compute_segment_duration
from worker.pool import TranscriptionWorkerPool
from worker.probe import probe_media
from worker.progress import ProgressReporter
from worker.repair import OversizeRepair
from worker.segmenter import Segmenter
from worker.transcriber import SegmentTranscriber

settings = get_settings()


class TranscriptionJobProcessor:
    """
    Runs one oversized upload through the pipeline:

    1. Probe duration and size
    2. Plan the segment duration
    3. Split, while the worker pool transcribes segments as they appear
    4. Repair segments still above the hard limit
    5. Wait for every segment result
    6. Assemble the transcript and clean up
    """

    def __init__(
        self,
        transcriber: TranscriberPort,
        segmenter: Optional[Segmenter] = None,
        assembler: Optional[ResultAssembler] = None,
    ):
        self.transcriber = transcriber
        self.segmenter = segmenter or Segmenter()
        self.assembler = assembler or ResultAssembler()
        self.repair = OversizeRepair(self.segmenter)

    async def run(self, job: Job, reporter: ProgressReporter) -> str:
        """
        Process a job and return the final transcript.

        The terminal progress event is left to the caller so it can attach the
        saved transcript identifier.

        Raises:
            PermanentError: Probe, split or repair failure (files already cleaned up)
        """
        start_time = time.time()
        pool: Optional[TranscriptionWorkerPool] = None
        pool_task: Optional[asyncio.Task] = None

        try:
            logger.info(
                f"========== Starting segmented transcription: session={job.session_id}, "
                f"file={job.original_filename} =========="
            )

            # Step 1: Probe
            info = await probe_media(job.source_path)
            job.duration_seconds = info.duration_seconds
            job.size_bytes = info.size_bytes
            reporter.emit(
                f"Analyzed audio file ({round(info.duration_seconds / 60)}min total)",
                PROGRESS_PROBED,
            )

            # Step 2: Plan
            job.segment_duration = compute_segment_duration(
                size_bytes=info.size_bytes,
                duration_seconds=info.duration_seconds,
                target_segment_bytes=settings.target_segment_bytes,
                min_seconds=settings.min_segment_seconds,
                max_seconds=settings.max_segment_seconds,
            )
            reporter.emit(
                f"Splitting audio into ~{round(job.segment_duration / 60)}min segments...",
                PROGRESS_PLANNED,
            )

            # Step 3: Split with concurrent discovery and transcription
            pool = TranscriptionWorkerPool(
                job=job,
                segmenter=self.segmenter,
                transcriber=SegmentTranscriber(self.transcriber),
                reporter=reporter,
            )
            pool_task = asyncio.create_task(pool.run())

            await self.segmenter.split(job)
            pool.mark_split_finished()
            reporter.emit("Audio split complete", PROGRESS_SPLIT)

            # Step 4: Repair
            repaired = await self.repair.run(job)
            pool.mark_repair_finished()
            if repaired:
                reporter.emit(f"Re-split {repaired} oversized segments", PROGRESS_SPLIT)

            # Step 5: Drain
            results = await pool_task
            pool_task = None

            # Step 6: Assemble
            reporter.emit("Transcription complete. Finalizing results...", PROGRESS_ASSEMBLING)
            transcript = self.assembler.assemble(results)
            self.assembler.cleanup(job)

            elapsed_time = time.time() - start_time
            logger.info(
                f"========== Segmented transcription COMPLETED: session={job.session_id}, "
                f"segments={len(results)}, time={elapsed_time:.2f}s =========="
            )
            return transcript

        except PermanentError as e:
            elapsed_time = time.time() - start_time
            logger.error(
                format_exception_short(
                    e, f"Permanent error in session {job.session_id} after {elapsed_time:.2f}s"
                )
            )
            await self._abort(job, pool, pool_task)
            raise

        except asyncio.CancelledError:
            logger.warning(f"Session {job.session_id} cancelled")
            await self._abort(job, pool, pool_task)
            raise

        except Exception as e:
            logger.error(f"Unexpected error in session {job.session_id}: {e}")
            logger.exception("Processing error details:")
            await self._abort(job, pool, pool_task)
            raise

    async def _abort(
        self,
        job: Job,
        pool: Optional[TranscriptionWorkerPool],
        pool_task: Optional[asyncio.Task],
    ) -> None:
        """Fail the pool, let in-flight calls drain, then remove every file of the job."""
        if pool is not None:
            await pool.abort()
        if pool_task is not None:
            await asyncio.gather(pool_task, return_exceptions=True)
        self.assembler.cleanup(job)
