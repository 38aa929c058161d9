"""
Oversize repair: re-split segments that still exceed the hard size limit.
"""

import glob
import os
from typing import Dict, List, Optional

from core.config import get_settings
from core.constants import REPAIR_MARKER
from core.errors import RepairExhaustedError, SplitError
from core.logger import logger
from domain.entities import Job, Segment, SegmentIndex
from worker.segmenter import Segmenter, segment_filename

settings = get_settings()


class OversizeRepair:
    """Halves the duration of oversized segments until every segment fits."""

    def __init__(
        self,
        segmenter: Segmenter,
        hard_limit_bytes: Optional[int] = None,
        max_passes: Optional[int] = None,
    ):
        self.segmenter = segmenter
        self.hard_limit_bytes = hard_limit_bytes or settings.transcription_limit_bytes
        self.max_passes = max_passes or settings.max_repair_passes

    async def run(self, job: Job) -> int:
        """
        Repair every oversized segment of a job.

        Args:
            job: Job whose initial split has finished

        Returns:
            Number of oversized segments that were re-split

        Raises:
            RepairExhaustedError: A segment is still too large at 1s, or the pass limit was hit
            SplitError: ffmpeg failed while re-splitting
        """
        durations: Dict[SegmentIndex, int] = {}
        repaired = 0
        passes = 0

        while True:
            oversized = self._find_oversized(job)
            if not oversized:
                if repaired:
                    logger.info(
                        f"[{job.session_id}] Repair complete: {repaired} segments re-split in {passes} passes"
                    )
                else:
                    logger.debug(f"[{job.session_id}] No oversized segments")
                return repaired

            passes += 1
            if passes > self.max_passes:
                raise RepairExhaustedError(
                    f"{len(oversized)} segments still exceed {self.hard_limit_bytes} bytes "
                    f"after {self.max_passes} repair passes"
                )

            logger.warning(
                f"[{job.session_id}] Repair pass {passes}: {len(oversized)} oversized segments "
                f"{[s.label for s in oversized]}"
            )
            for segment in oversized:
                current = durations.get(segment.index, job.segment_duration)
                if current <= 1:
                    raise RepairExhaustedError(
                        f"Segment {segment.label} is {segment.size_bytes} bytes at 1s duration, "
                        f"limit is {self.hard_limit_bytes} bytes"
                    )
                half = max(1, current // 2)
                for child in await self._resplit(job, segment, half):
                    durations[child] = half
                repaired += 1

    def _find_oversized(self, job: Job) -> List[Segment]:
        return [
            segment
            for segment in self.segmenter.list_segments(job)
            if segment.size_bytes > self.hard_limit_bytes
        ]

    async def _resplit(self, job: Job, segment: Segment, seconds: int) -> List[SegmentIndex]:
        """Split one segment at `seconds`, delete it and rename the pieces into the namespace."""
        temp_prefix = f"{job.session_id}-{REPAIR_MARKER}-{segment.label}-"
        temp_pattern = os.path.join(job.work_dir, f"{temp_prefix}%03d{job.extension}")
        logger.info(
            f"[{job.session_id}] Re-splitting segment {segment.label} "
            f"({segment.size_bytes / (1024 * 1024):.2f}MB) at {seconds}s"
        )

        try:
            await self.segmenter.split_file(segment.file_path, seconds, temp_pattern)
        except SplitError:
            self._remove_quietly(self._temp_pieces(job, temp_prefix))
            raise

        pieces = self._temp_pieces(job, temp_prefix)
        if not pieces:
            raise SplitError(f"Re-splitting segment {segment.label} produced no output")

        os.remove(segment.file_path)

        children = []
        for position, piece in enumerate(pieces):
            child = segment.index + (position,)
            os.rename(piece, os.path.join(job.work_dir, segment_filename(job, child)))
            children.append(child)

        logger.debug(f"[{job.session_id}] Segment {segment.label} -> {len(children)} pieces")
        return children

    @staticmethod
    def _temp_pieces(job: Job, temp_prefix: str) -> List[str]:
        pattern = os.path.join(glob.escape(job.work_dir), f"{glob.escape(temp_prefix)}*{job.extension}")
        return sorted(glob.glob(pattern))

    @staticmethod
    def _remove_quietly(paths: List[str]) -> None:
        for path in paths:
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to remove partial repair output {path}: {e}")
