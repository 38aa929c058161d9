"""
Audio segmentation with ffmpeg's segment muxer.
Segments are written sequentially and can be listed while the split runs.
"""

import asyncio
import os
import re
import time
from pathlib import Path
from typing import List, Optional

from core.config import get_settings
from core.constants import SEGMENT_MARKER
from core.errors import MissingDependencyError, SplitError
from core.logger import logger, format_exception_short
from domain.entities import Job, Segment, SegmentIndex, format_index

settings = get_settings()


def segment_pattern(job: Job) -> str:
    """ffmpeg output pattern for the initial split of a job."""
    return os.path.join(
        job.work_dir, f"{job.session_id}-{SEGMENT_MARKER}-%03d{job.extension}"
    )


def segment_filename(job: Job, index: SegmentIndex) -> str:
    """Filename of a segment in the job's namespace, e.g. <id>-chunk-005_001.mp3."""
    head, *tail = index
    label = f"{head:03d}" + "".join(f"_{part:03d}" for part in tail)
    return f"{job.session_id}-{SEGMENT_MARKER}-{label}{job.extension}"


def parse_segment_index(job: Job, filename: str) -> Optional[SegmentIndex]:
    """Parse the index embedded in a segment filename, None if it is not one."""
    pattern = (
        rf"^{re.escape(job.session_id)}-{SEGMENT_MARKER}-(\d+(?:_\d+)*)"
        rf"{re.escape(job.extension)}$"
    )
    match = re.match(pattern, filename)
    if not match:
        return None
    return tuple(int(part) for part in match.group(1).split("_"))


class Segmenter:
    """Drives ffmpeg to cut a source file into codec-copied segments."""

    def __init__(self, ffmpeg_binary: Optional[str] = None):
        self.ffmpeg_binary = ffmpeg_binary or settings.ffmpeg_binary
        logger.debug(f"Segmenter initialized (ffmpeg={self.ffmpeg_binary})")

    async def split(self, job: Job) -> None:
        """
        Split the job's source file at the planned segment duration.

        Raises:
            SplitError: If ffmpeg reports an error
            MissingDependencyError: If ffmpeg is not installed
        """
        Path(job.work_dir).mkdir(parents=True, exist_ok=True)
        logger.info(
            f"[{job.session_id}] Splitting {job.original_filename} into ~{job.segment_duration}s segments"
        )
        await self.split_file(job.source_path, job.segment_duration, segment_pattern(job))

    async def split_file(self, source_path: str, segment_seconds: int, output_pattern: str) -> None:
        """
        Cut any audio file into consecutive segments without re-encoding.

        Args:
            source_path: File to split
            segment_seconds: Segment duration in seconds
            output_pattern: ffmpeg output pattern with a %03d ordinal

        Raises:
            SplitError: If ffmpeg exits with a non-zero code
            MissingDependencyError: If ffmpeg is not installed
        """
        command = [
            self.ffmpeg_binary,
            "-hide_banner",
            "-loglevel", "error",
            "-nostdin",
            "-y",
            "-i", source_path,
            "-map", "0:a",  # drop cover art streams
            "-f", "segment",
            "-segment_time", str(segment_seconds),
            "-c", "copy",
            "-reset_timestamps", "1",
            output_pattern,
        ]
        logger.debug(f"ffmpeg command: {' '.join(command)}")
        start_time = time.time()

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            error_msg = "ffmpeg not installed. Install with: brew install ffmpeg (macOS) or apt-get install ffmpeg (Linux)"
            logger.error(error_msg)
            raise MissingDependencyError(error_msg) from e

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            logger.warning(f"Split of {source_path} cancelled")
            raise

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="ignore").strip()
            error = SplitError(
                f"ffmpeg exited with code {process.returncode}: {detail[-500:] or 'no output'}"
            )
            logger.error(format_exception_short(error, "Split failed"))
            raise error

        logger.info(
            f"Split of {Path(source_path).name} finished in {time.time() - start_time:.2f}s"
        )

    def list_segments(self, job: Job) -> List[Segment]:
        """
        List the job's segment files sorted by index.
        Files removed between listing and stat are skipped.
        """
        try:
            names = os.listdir(job.work_dir)
        except FileNotFoundError:
            return []

        segments = []
        for name in names:
            index = parse_segment_index(job, name)
            if index is None:
                continue
            path = os.path.join(job.work_dir, name)
            try:
                size_bytes = os.path.getsize(path)
            except FileNotFoundError:
                continue
            segments.append(
                Segment(
                    session_id=job.session_id,
                    index=index,
                    file_path=path,
                    size_bytes=size_bytes,
                )
            )

        segments.sort(key=lambda segment: segment.index)
        logger.debug(
            f"[{job.session_id}] Listed {len(segments)} segments: "
            f"{[format_index(s.index) for s in segments]}"
        )
        return segments
