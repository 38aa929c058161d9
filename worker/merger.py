"""
Result assembly for segment transcriptions.
Includes detailed logging and best-effort cleanup of working files.
"""

import glob
import os
from typing import Dict, List

from core.logger import logger
from domain.entities import Job, SegmentIndex, SegmentResult, format_index


class ResultAssembler:
    """Joins segment results in index order and removes the job's files."""

    def assemble(self, results: Dict[SegmentIndex, SegmentResult]) -> str:
        """
        Concatenate results in ascending index order with a single space.

        Args:
            results: Terminal result per segment index

        Returns:
            Final transcript, including placeholders for failed segments
        """
        if not results:
            logger.warning("No segment results to assemble")
            return ""

        ordered = [results[index] for index in sorted(results)]
        failed = [format_index(result.index) for result in ordered if result.failed]
        if failed:
            logger.warning(f"Assembling with {len(failed)} failed segments: {failed}")

        transcript = " ".join(result.text for result in ordered)
        logger.info(
            f"Assembled {len(ordered)} segments: final_length={len(transcript)} chars"
        )
        logger.debug(f"Transcript preview: {transcript[:200]}...")
        return transcript

    def cleanup(self, job: Job) -> List[str]:
        """
        Delete the source file and every file in the job's segment namespace.
        Failures are logged; the periodic sweep removes leftovers.

        Returns:
            Paths that could not be deleted
        """
        pattern = os.path.join(glob.escape(job.work_dir), f"{glob.escape(job.segment_prefix)}*")
        paths = [job.source_path] + sorted(glob.glob(pattern))

        leftovers = []
        removed = 0
        for path in paths:
            try:
                os.remove(path)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete {path}: {e}")
                leftovers.append(path)

        logger.info(f"[{job.session_id}] Cleanup removed {removed} files")
        return leftovers
